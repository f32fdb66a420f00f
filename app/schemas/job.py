"""Job posting and application schemas"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from app.schemas.user import UserSummary

JobType = Literal["internship", "full-time", "part-time"]
JobStatus = Literal["active", "closed", "draft"]
ApplicationStatus = Literal["pending", "reviewed", "accepted", "rejected"]


class JobPostingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    requirements: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=255)
    type: JobType
    application_deadline: datetime
    status: JobStatus = "active"


class JobPostingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[JobType] = None
    application_deadline: Optional[datetime] = None
    status: Optional[JobStatus] = None


class JobPostingResponse(BaseModel):
    id: int
    company_id: int
    title: str
    description: str
    requirements: str
    location: str
    type: str
    application_deadline: datetime
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    company: Optional[UserSummary] = None
    application_status: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationResponse(BaseModel):
    id: int
    job_posting_id: int
    student_id: int
    status: str
    resume_path: str
    cover_letter_path: Optional[str] = None
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    student: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ApplicationDetailResponse(ApplicationResponse):
    job_posting: Optional[JobPostingResponse] = None
