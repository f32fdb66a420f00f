"""
Job application API endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from app.core import permissions
from app.core.config import settings
from app.core.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.job import (
    ApplicationDetailResponse,
    ApplicationResponse,
    ApplicationStatusUpdate,
)
from app.services.job_service import UploadedDocument, job_service

router = APIRouter(prefix="/applications", tags=["applications"])


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedDocument]:
    if upload is None:
        return None
    # One byte past the limit is enough for the size check to reject it
    content = await upload.read(settings.max_upload_size_bytes + 1)
    return UploadedDocument(upload.filename, content, upload.content_type)


@router.get("", response_model=ApiResponse[List[ApplicationResponse]])
async def list_applications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Companies see applications to their postings; students see their own.
    """
    if permissions.is_company(current_user):
        applications = job_service.list_company_applications(db, current_user)
    else:
        applications = job_service.list_student_applications(db, current_user)
    return success([ApplicationResponse.model_validate(a) for a in applications])


@router.post("", response_model=ApiResponse[ApplicationResponse], status_code=status.HTTP_201_CREATED)
async def submit_application(
    job_posting_id: int = Form(...),
    resume: UploadFile = File(...),
    cover_letter: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Apply to a job posting (multipart form)

    - **job_posting_id**: posting to apply to
    - **resume**: PDF file
    - **cover_letter**: optional PDF file
    """
    application = job_service.submit_application(
        db,
        current_user,
        job_posting_id,
        await _read_upload(resume),
        await _read_upload(cover_letter)
    )
    return success(ApplicationResponse.model_validate(application), "Application submitted successfully")


@router.get("/{application_id}", response_model=ApiResponse[ApplicationDetailResponse])
async def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    application = job_service.get_application(db, current_user.id, application_id)
    return success(ApplicationDetailResponse.model_validate(application))


@router.put("/{application_id}", response_model=ApiResponse[ApplicationResponse])
async def update_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Move an application to a new status (owning company only)"""
    application = job_service.update_status(db, current_user, application_id, data.status)
    return success(ApplicationResponse.model_validate(application), "Application status updated successfully")


@router.delete("/{application_id}", response_model=ApiResponse[None])
async def delete_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    job_service.delete_application(db, current_user.id, application_id)
    return success(message="Application deleted successfully")
