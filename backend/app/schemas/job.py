from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.config import settings
from app.utils.clock import today

JobType = Literal[
    "greenskeeping",
    "equipment_operation",
    "irrigation",
    "landscaping",
    "general_maintenance",
]
ExperienceLevel = Literal["entry", "intermediate", "expert"]
UrgencyLevel = Literal["normal", "high", "emergency"]
JobStatus = Literal["open", "in_progress", "completed", "cancelled"]


def _check_rate(value: float | None) -> float | None:
    if value is None:
        return value
    if not settings.min_hourly_rate <= value <= settings.max_hourly_rate:
        raise ValueError(
            f"Hourly rate must be between {settings.min_hourly_rate:g} and {settings.max_hourly_rate:g}"
        )
    return value


def _normalize_certifications(values: list[str] | None) -> list[str] | None:
    if values is None:
        return values
    seen: list[str] = []
    for v in values:
        v = v.strip().lower()
        if v and v not in seen:
            seen.append(v)
    return seen


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field(..., min_length=1)


class JobCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=1000)
    job_type: JobType
    location: Location
    start_date: date
    end_date: date | None = None
    hourly_rate: float
    required_certifications: list[str] = []
    required_experience: ExperienceLevel | None = None
    urgency_level: UrgencyLevel = "normal"

    @field_validator("start_date")
    @classmethod
    def start_date_not_past(cls, v: date) -> date:
        if v.isoformat() < today():
            raise ValueError("Start date must be in the future")
        return v

    @field_validator("hourly_rate")
    @classmethod
    def rate_in_range(cls, v):
        return _check_rate(v)

    @field_validator("required_certifications")
    @classmethod
    def normalize_certifications(cls, v):
        return _normalize_certifications(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class JobPatch(BaseModel):
    """Editable job fields. Anything else in the body (status, course_id) is ignored."""

    title: str | None = Field(None, min_length=5, max_length=100)
    description: str | None = Field(None, min_length=20, max_length=1000)
    job_type: JobType | None = None
    location: Location | None = None
    start_date: date | None = None
    end_date: date | None = None
    hourly_rate: float | None = None
    required_certifications: list[str] | None = None
    required_experience: ExperienceLevel | None = None
    urgency_level: UrgencyLevel | None = None

    @field_validator("start_date")
    @classmethod
    def start_date_not_past(cls, v: date | None) -> date | None:
        if v is not None and v.isoformat() < today():
            raise ValueError("Start date must be in the future")
        return v

    @field_validator("hourly_rate")
    @classmethod
    def rate_in_range(cls, v):
        return _check_rate(v)

    @field_validator("required_certifications")
    @classmethod
    def normalize_certifications(cls, v):
        return _normalize_certifications(v)


class JobStatusChange(BaseModel):
    action: Literal["start", "complete", "cancel"]
    completion_notes: str | None = Field(None, max_length=2000)


class JobResponse(BaseModel):
    id: str
    course_id: str
    title: str
    description: str
    job_type: str
    location: Location
    start_date: str
    end_date: str | None
    hourly_rate: float
    required_certifications: list[str]
    required_experience: str | None
    urgency_level: str
    status: str
    completion_notes: str | None
    created_at: str
    updated_at: str
    started_at: str | None = None
    completed_at: str | None = None
    cancelled_at: str | None = None
    application_count: int = 0


class ActiveJobResponse(JobResponse):
    updates_count: int = 0
    last_update_at: str | None = None


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
    page: int
    per_page: int
