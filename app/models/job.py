"""
Job posting and application models
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now

APPLICATION_STATUSES = ("pending", "reviewed", "accepted", "rejected")


class JobPosting(Base):
    """Job posting owned by a company user"""
    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    location = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)  # 'internship', 'full-time', 'part-time'
    application_deadline = Column(DateTime, nullable=False)
    status = Column(String(20), default="active", nullable=False, index=True)  # 'active', 'closed', 'draft'

    # Timestamps
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    company = relationship("User")
    applications = relationship(
        "Application",
        back_populates="job_posting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Application(Base):
    """A student's application to a job posting"""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_posting_id = Column(Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Status: 'pending', 'reviewed', 'accepted', 'rejected'
    status = Column(String(20), default="pending", nullable=False)

    # Stored file references, relative to the storage root
    resume_path = Column(Text, nullable=False)
    cover_letter_path = Column(Text, nullable=True)

    # Timestamps
    applied_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("job_posting_id", "student_id", name="unique_application"),
    )

    # Relationships
    job_posting = relationship("JobPosting", back_populates="applications")
    student = relationship("User")

    @property
    def file_paths(self):
        return [p for p in (self.resume_path, self.cover_letter_path) if p]
