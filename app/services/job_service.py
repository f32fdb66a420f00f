"""
Job service - job postings and student applications
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.core import permissions
from app.core.config import settings
from app.core.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.database import transaction
from app.models.job import Application, JobPosting, APPLICATION_STATUSES
from app.models.user import User
from app.schemas.job import JobPostingCreate, JobPostingResponse, JobPostingUpdate
from app.services.storage_service import StorageError, storage_service

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
RESUME_FOLDER = "resumes"
COVER_LETTER_FOLDER = "cover_letters"


class UploadedDocument:
    """An uploaded file already read into memory"""

    def __init__(self, filename: str, content: bytes, content_type: Optional[str] = None):
        self.filename = filename or ""
        self.content = content
        self.content_type = content_type


def _validate_pdf(field: str, document: UploadedDocument) -> None:
    if not document.content:
        raise ValidationError.for_field(field, f"The {field.replace('_', ' ')} must be a file.")
    if len(document.content) > settings.max_upload_size_bytes:
        raise ValidationError.for_field(
            field,
            f"The {field.replace('_', ' ')} may not be greater than {settings.MAX_UPLOAD_SIZE_MB} MB."
        )
    if not document.filename.lower().endswith(".pdf") or not document.content.startswith(PDF_MAGIC):
        raise ValidationError.for_field(field, f"The {field.replace('_', ' ')} must be a file of type: pdf.")


class JobService:
    """Service for job postings and applications"""

    # ------------------------------------------------------------------
    # Job postings
    # ------------------------------------------------------------------

    def get_job_posting(self, db: Session, job_posting_id: int) -> JobPosting:
        job_posting = db.get(JobPosting, job_posting_id)
        if not job_posting:
            raise NotFoundError("Job posting not found")
        return job_posting

    def _get_owned_posting(self, db: Session, company_id: int, job_posting_id: int) -> JobPosting:
        job_posting = db.query(JobPosting).filter(
            JobPosting.id == job_posting_id,
            JobPosting.company_id == company_id
        ).first()
        if not job_posting:
            raise NotFoundError("Job posting not found")
        return job_posting

    def to_response(self, job_posting: JobPosting, application_status: Optional[str] = None) -> JobPostingResponse:
        response = JobPostingResponse.model_validate(job_posting)
        response.application_status = application_status
        return response

    def list_active_postings(self, db: Session, viewer_id: Optional[int] = None) -> List[JobPostingResponse]:
        """Active postings, newest first, with the viewer's application status"""
        postings = db.query(JobPosting).filter(
            JobPosting.status == "active"
        ).order_by(JobPosting.created_at.desc(), JobPosting.id.desc()).all()

        statuses = {}
        if viewer_id is not None and postings:
            rows = db.query(Application.job_posting_id, Application.status).filter(
                Application.student_id == viewer_id,
                Application.job_posting_id.in_([p.id for p in postings])
            ).all()
            statuses = {row.job_posting_id: row.status for row in rows}

        return [self.to_response(p, statuses.get(p.id)) for p in postings]

    def get_posting_for_viewer(self, db: Session, job_posting_id: int, viewer_id: Optional[int] = None) -> JobPostingResponse:
        job_posting = self.get_job_posting(db, job_posting_id)
        application_status = None
        if viewer_id is not None:
            application = db.query(Application).filter(
                Application.student_id == viewer_id,
                Application.job_posting_id == job_posting.id
            ).first()
            application_status = application.status if application else None
        return self.to_response(job_posting, application_status)

    def list_company_postings(self, db: Session, company: User) -> List[JobPosting]:
        if not permissions.is_company(company):
            raise ForbiddenError("Only company accounts have job postings")
        return db.query(JobPosting).filter(
            JobPosting.company_id == company.id
        ).order_by(JobPosting.created_at.desc(), JobPosting.id.desc()).all()

    def create_job_posting(self, db: Session, company: User, data: JobPostingCreate) -> JobPosting:
        if not permissions.is_company(company):
            raise ForbiddenError("Only company accounts can create job postings")

        job_posting = JobPosting(company_id=company.id, **data.model_dump())
        with transaction(db):
            db.add(job_posting)
        db.refresh(job_posting)
        logger.info(f"Job posting {job_posting.id} created by company {company.id}")
        return job_posting

    def update_job_posting(self, db: Session, company: User, job_posting_id: int, data: JobPostingUpdate) -> JobPosting:
        job_posting = self._get_owned_posting(db, company.id, job_posting_id)
        with transaction(db):
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(job_posting, field, value)
        db.refresh(job_posting)
        return job_posting

    def delete_job_posting(self, db: Session, company: User, job_posting_id: int) -> None:
        """Delete a posting together with its applications and their files"""
        job_posting = self._get_owned_posting(db, company.id, job_posting_id)
        paths = [path for application in job_posting.applications for path in application.file_paths]
        self._delete_with_files(db, job_posting, paths)
        logger.info(f"Job posting {job_posting_id} deleted by company {company.id}")

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def get_application(self, db: Session, viewer_id: int, application_id: int) -> Application:
        application = db.get(Application, application_id)
        if not application:
            raise NotFoundError("Application not found")
        if not permissions.can_view_application(viewer_id, application):
            raise ForbiddenError("Unauthorized")
        return application

    def list_company_applications(self, db: Session, company: User) -> List[Application]:
        """Applications to the company's postings"""
        return db.query(Application).join(
            JobPosting, JobPosting.id == Application.job_posting_id
        ).filter(
            JobPosting.company_id == company.id
        ).order_by(Application.applied_at.desc(), Application.id.desc()).all()

    def list_student_applications(self, db: Session, student: User) -> List[Application]:
        return db.query(Application).filter(
            Application.student_id == student.id
        ).order_by(Application.applied_at.desc(), Application.id.desc()).all()

    def submit_application(
        self,
        db: Session,
        student: User,
        job_posting_id: int,
        resume: UploadedDocument,
        cover_letter: Optional[UploadedDocument] = None
    ) -> Application:
        """
        Apply to a job posting with a PDF resume and optional PDF cover letter.

        Files are written first; if the row cannot be committed they are removed again.
        """
        if not permissions.is_student(student):
            raise ForbiddenError("Only student accounts can apply to job postings")

        job_posting = db.get(JobPosting, job_posting_id)
        if not job_posting:
            raise ValidationError.for_field("job_posting_id", "The selected job posting id is invalid.")
        if job_posting.status != "active":
            raise ConflictError("This job posting is not accepting applications")

        existing = db.query(Application.id).filter(
            Application.job_posting_id == job_posting_id,
            Application.student_id == student.id
        ).first()
        if existing:
            raise ConflictError("You have already applied to this job posting")

        _validate_pdf("resume", resume)
        if cover_letter is not None:
            _validate_pdf("cover_letter", cover_letter)

        stored = []
        try:
            resume_path = storage_service.save(RESUME_FOLDER, resume.filename, resume.content)
            stored.append(resume_path)
            cover_letter_path = None
            if cover_letter is not None:
                cover_letter_path = storage_service.save(
                    COVER_LETTER_FOLDER, cover_letter.filename, cover_letter.content
                )
                stored.append(cover_letter_path)

            application = Application(
                job_posting_id=job_posting.id,
                student_id=student.id,
                status="pending",
                resume_path=resume_path,
                cover_letter_path=cover_letter_path,
            )
            with transaction(db):
                db.add(application)
        except IntegrityError:
            self._discard(stored)
            raise ConflictError("You have already applied to this job posting")
        except StorageError as e:
            self._discard(stored)
            logger.error(f"Failed to store application files: {e}")
            raise AppError("Failed to store the uploaded files.")
        except Exception:
            self._discard(stored)
            raise

        db.refresh(application)
        logger.info(f"Application {application.id} submitted by student {student.id} to posting {job_posting.id}")
        return application

    def update_status(self, db: Session, company: User, application_id: int, status: str) -> Application:
        application = db.get(Application, application_id)
        if not application:
            raise NotFoundError("Application not found")
        if not permissions.owns_job_posting(company.id, application.job_posting):
            raise ForbiddenError("Unauthorized")
        if status not in APPLICATION_STATUSES:
            raise ValidationError.for_field("status", "The selected status is invalid.")

        with transaction(db):
            application.status = status
        db.refresh(application)
        logger.info(f"Application {application_id} moved to {status} by company {company.id}")
        return application

    def delete_application(self, db: Session, actor_id: int, application_id: int) -> None:
        """Delete an application and release its stored files as one unit"""
        application = self.get_application(db, actor_id, application_id)
        self._delete_with_files(db, application, application.file_paths)
        logger.info(f"Application {application_id} deleted by {actor_id}")

    def _discard(self, stored: List[str]) -> None:
        """Best-effort removal of files written for a row that was never committed"""
        try:
            storage_service.purge(storage_service.stage_delete(stored))
        except StorageError:
            logger.error(f"Could not clean up orphaned uploads {stored}", exc_info=True)

    def _delete_with_files(self, db: Session, record, paths: List[str]) -> None:
        """
        Files are moved aside first, then the row deletion is committed, then
        the staged files are removed. A failure before the commit puts the
        files back and keeps the row.
        """
        try:
            staged = storage_service.stage_delete(paths)
        except StorageError as e:
            logger.error(f"Could not release stored files: {e}")
            raise AppError("Failed to delete the stored files.")

        try:
            with transaction(db):
                db.delete(record)
        except Exception:
            storage_service.restore(staged)
            raise

        storage_service.purge(staged)


job_service = JobService()
