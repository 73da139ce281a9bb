from sqlalchemy import JSON, Column, Float, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    course_id = Column(Text, ForeignKey("profiles.id"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    job_type = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(Text, nullable=False)
    start_date = Column(Text, nullable=False)
    end_date = Column(Text)
    hourly_rate = Column(Float, nullable=False)
    required_certifications = Column(JSON, nullable=False, default=list)
    required_experience = Column(Text)
    urgency_level = Column(Text, nullable=False, default="normal")
    status = Column(Text, nullable=False, default="open")
    completion_notes = Column(Text)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    started_at = Column(Text)
    completed_at = Column(Text)
    cancelled_at = Column(Text)

    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
    updates = relationship(
        "JobUpdate",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobUpdate.created_at",
    )
