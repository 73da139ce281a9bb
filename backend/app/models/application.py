from sqlalchemy import Column, Float, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    professional_id = Column(Text, ForeignKey("profiles.id"), nullable=False)
    message = Column(Text)
    proposed_rate = Column(Float)
    status = Column(Text, nullable=False, default="pending")
    applied_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="applications")
