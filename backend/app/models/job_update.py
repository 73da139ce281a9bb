from sqlalchemy import JSON, Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


class JobUpdate(Base):
    __tablename__ = "job_updates"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    professional_id = Column(Text, ForeignKey("profiles.id"), nullable=False)
    update_type = Column(Text, nullable=False)
    milestone = Column(Text)
    content = Column(Text)
    photos = Column(JSON, nullable=False, default=list)
    created_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="updates")
