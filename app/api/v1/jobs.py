"""
Job posting API endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user, get_optional_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.job import JobPostingCreate, JobPostingResponse, JobPostingUpdate
from app.services.job_service import job_service

router = APIRouter(tags=["jobs"])


@router.get("/job-postings", response_model=ApiResponse[List[JobPostingResponse]])
async def list_job_postings(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """
    Active job postings, newest first

    Authenticated callers also get their own application status per posting.
    """
    viewer_id = current_user.id if current_user else None
    return success(job_service.list_active_postings(db, viewer_id))


@router.get("/job-postings/{job_posting_id}", response_model=ApiResponse[JobPostingResponse])
async def get_job_posting(
    job_posting_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    viewer_id = current_user.id if current_user else None
    return success(job_service.get_posting_for_viewer(db, job_posting_id, viewer_id))


@router.get("/company/job-postings", response_model=ApiResponse[List[JobPostingResponse]])
async def list_company_job_postings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """All postings of the current company, any status"""
    postings = job_service.list_company_postings(db, current_user)
    return success([job_service.to_response(p) for p in postings])


@router.post(
    "/job-postings",
    response_model=ApiResponse[JobPostingResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_job_posting(
    data: JobPostingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    job_posting = job_service.create_job_posting(db, current_user, data)
    return success(job_service.to_response(job_posting), "Job posting created successfully")


@router.put("/job-postings/{job_posting_id}", response_model=ApiResponse[JobPostingResponse])
async def update_job_posting(
    job_posting_id: int,
    data: JobPostingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    job_posting = job_service.update_job_posting(db, current_user, job_posting_id, data)
    return success(job_service.to_response(job_posting), "Job posting updated successfully")


@router.delete("/job-postings/{job_posting_id}", response_model=ApiResponse[None])
async def delete_job_posting(
    job_posting_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a posting with all its applications and their files"""
    job_service.delete_job_posting(db, current_user, job_posting_id)
    return success(message="Job posting deleted successfully")
