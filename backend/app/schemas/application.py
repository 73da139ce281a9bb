from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.config import settings

ApplicationStatus = Literal["pending", "accepted_by_course", "accepted_by_professional", "rejected"]
ApplicationAction = Literal["accept", "reject", "confirm", "decline"]


class ApplicationCreate(BaseModel):
    job_id: str
    message: str | None = Field(None, min_length=10, max_length=500)
    proposed_rate: float | None = None

    @field_validator("proposed_rate")
    @classmethod
    def rate_in_range(cls, v: float | None) -> float | None:
        if v is None:
            return v
        if not settings.min_proposed_rate <= v <= settings.max_proposed_rate:
            raise ValueError(
                f"Proposed rate must be between {settings.min_proposed_rate:g} and {settings.max_proposed_rate:g}"
            )
        return v


class ApplicationTransition(BaseModel):
    action: ApplicationAction


class ApplicationResponse(BaseModel):
    id: str
    job_id: str
    professional_id: str
    message: str | None
    proposed_rate: float | None
    status: ApplicationStatus
    applied_at: str
    updated_at: str
    job_title: str | None = None
