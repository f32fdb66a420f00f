"""
Job postings and applications with stored PDF documents.
"""
import asyncio
from datetime import timedelta
from unittest import mock

import pytest

from app.api.v1.applications import _read_upload
from app.core.config import settings
from app.core.exceptions import ConflictError, ForbiddenError, ValidationError
from app.models.job import Application, JobPosting
from app.schemas.job import JobPostingCreate
from app.services.job_service import UploadedDocument, job_service
from app.services.storage_service import storage_service
from app.utils.time_utils import utc_now
from tests.conftest import PDF_BYTES

API = "/api/v1"


def _posting_data(**overrides):
    data = {
        "title": "Backend Intern",
        "description": "Work on APIs",
        "requirements": "Python",
        "location": "Remote",
        "type": "internship",
        "application_deadline": utc_now() + timedelta(days=30),
    }
    data.update(overrides)
    return JobPostingCreate(**data)


def _resume(name="resume.pdf", content=PDF_BYTES):
    return UploadedDocument(name, content, "application/pdf")


@pytest.fixture
def company(make_user):
    return make_user("Acme", role="company")


@pytest.fixture
def student(make_user):
    return make_user("Student", role="student")


@pytest.fixture
def posting(db, company):
    return job_service.create_job_posting(db, company, _posting_data())


def test_only_companies_create_postings(db, student):
    with pytest.raises(ForbiddenError):
        job_service.create_job_posting(db, student, _posting_data())


def test_submit_application_stores_files(db, student, posting):
    application = job_service.submit_application(
        db, student, posting.id, _resume(), _resume("letter.pdf")
    )

    assert application.status == "pending"
    assert application.resume_path.startswith("resumes/")
    assert application.cover_letter_path.startswith("cover_letters/")
    assert storage_service.exists(application.resume_path)
    assert storage_service.exists(application.cover_letter_path)


def test_duplicate_application_conflicts(db, student, posting):
    job_service.submit_application(db, student, posting.id, _resume())

    with pytest.raises(ConflictError):
        job_service.submit_application(db, student, posting.id, _resume())
    assert db.query(Application).count() == 1


def test_non_pdf_resume_is_rejected(db, student, posting, storage_root):
    with pytest.raises(ValidationError) as exc:
        job_service.submit_application(db, student, posting.id, _resume("resume.txt", b"plain text"))

    assert "resume" in exc.value.errors
    assert not (storage_root / "resumes").exists()


def test_company_cannot_apply(db, company, posting):
    with pytest.raises(ForbiddenError):
        job_service.submit_application(db, company, posting.id, _resume())


def test_closed_posting_rejects_applications(db, company, student):
    closed = job_service.create_job_posting(db, company, _posting_data(status="closed"))
    with pytest.raises(ConflictError):
        job_service.submit_application(db, student, closed.id, _resume())


def test_failed_commit_removes_uploaded_files(db, student, posting, storage_root):
    with mock.patch("app.services.job_service.transaction", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError):
            job_service.submit_application(db, student, posting.id, _resume())

    assert list((storage_root / "resumes").iterdir()) == []
    assert db.query(Application).count() == 0


def test_delete_application_removes_row_and_files(db, student, posting):
    application = job_service.submit_application(db, student, posting.id, _resume(), _resume("letter.pdf"))
    paths = application.file_paths

    job_service.delete_application(db, student.id, application.id)

    assert db.query(Application).count() == 0
    assert not any(storage_service.exists(p) for p in paths)


def test_failed_delete_keeps_row_and_files(db, student, posting):
    application = job_service.submit_application(db, student, posting.id, _resume())
    path = application.resume_path

    with mock.patch.object(db, "delete", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError):
            job_service.delete_application(db, student.id, application.id)

    assert db.query(Application).count() == 1
    assert storage_service.exists(path)


def test_delete_posting_cascades_applications(db, company, student, posting):
    application = job_service.submit_application(db, student, posting.id, _resume())
    path = application.resume_path

    job_service.delete_job_posting(db, company, posting.id)

    assert db.query(JobPosting).count() == 0
    assert db.query(Application).count() == 0
    assert not storage_service.exists(path)


def test_status_update_only_by_owning_company(db, make_user, student, posting):
    rival = make_user("Rival", role="company")
    application = job_service.submit_application(db, student, posting.id, _resume())

    with pytest.raises(ForbiddenError):
        job_service.update_status(db, rival, application.id, "reviewed")

    updated = job_service.update_status(db, posting.company, application.id, "accepted")
    assert updated.status == "accepted"


def test_postings_show_viewer_application_status(db, student, posting):
    assert job_service.list_active_postings(db, student.id)[0].application_status is None
    job_service.submit_application(db, student, posting.id, _resume())
    assert job_service.list_active_postings(db, student.id)[0].application_status == "pending"
    assert job_service.list_active_postings(db)[0].application_status is None


def test_jobs_api_flow(client, make_user, auth_headers):
    company = make_user("Acme", role="company")
    student = make_user("Student")

    response = client.post(
        f"{API}/job-postings",
        json={
            "title": "Data Analyst",
            "description": "Dashboards",
            "requirements": "SQL",
            "location": "Berlin",
            "type": "full-time",
            "application_deadline": "2030-01-01T00:00:00",
        },
        headers=auth_headers(company)
    )
    assert response.status_code == 201
    posting_id = response.json()["data"]["id"]

    response = client.get(f"{API}/job-postings")
    assert [p["id"] for p in response.json()["data"]] == [posting_id]

    response = client.post(
        f"{API}/applications",
        data={"job_posting_id": str(posting_id)},
        files={"resume": ("cv.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers(student)
    )
    assert response.status_code == 201
    application_id = response.json()["data"]["id"]

    response = client.get(f"{API}/job-postings/{posting_id}", headers=auth_headers(student))
    assert response.json()["data"]["application_status"] == "pending"

    response = client.get(f"{API}/applications", headers=auth_headers(company))
    assert [a["id"] for a in response.json()["data"]] == [application_id]

    response = client.put(
        f"{API}/applications/{application_id}",
        json={"status": "reviewed"},
        headers=auth_headers(company)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "reviewed"

    response = client.get(f"{API}/applications/{application_id}", headers=auth_headers(student))
    assert response.json()["data"]["job_posting"]["id"] == posting_id

    response = client.delete(f"{API}/applications/{application_id}", headers=auth_headers(student))
    assert response.status_code == 200


def test_application_requires_resume(client, make_user, auth_headers):
    company = make_user("Acme", role="company")
    student = make_user("Student")
    response = client.post(
        f"{API}/job-postings",
        json={
            "title": "Designer",
            "description": "UI",
            "requirements": "Figma",
            "location": "Paris",
            "type": "part-time",
            "application_deadline": "2030-01-01T00:00:00",
        },
        headers=auth_headers(company)
    )
    posting_id = response.json()["data"]["id"]

    response = client.post(
        f"{API}/applications",
        data={"job_posting_id": str(posting_id)},
        headers=auth_headers(student)
    )
    assert response.status_code == 422
    assert "resume" in response.json()["errors"]


class _FakeUpload:
    filename = "big.pdf"
    content_type = "application/pdf"

    def __init__(self, content):
        self.content = content
        self.requested = None

    async def read(self, size=-1):
        self.requested = size
        return self.content if size < 0 else self.content[:size]


def test_upload_read_stops_past_size_limit(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    upload = _FakeUpload(PDF_BYTES + b"0" * (2 * 1024 * 1024))

    document = asyncio.run(_read_upload(upload))

    assert upload.requested == 1024 * 1024 + 1
    assert len(document.content) == 1024 * 1024 + 1


def test_oversized_resume_is_rejected(db, student, posting, storage_root, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

    with pytest.raises(ValidationError) as exc:
        job_service.submit_application(db, student, posting.id, _resume())

    assert "greater than" in exc.value.errors["resume"][0]
    assert db.query(Application).count() == 0
