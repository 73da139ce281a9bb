from typing import Literal

from pydantic import BaseModel, Field, model_validator

UpdateType = Literal["progress", "milestone", "photo"]
Milestone = Literal["started", "in_progress", "awaiting_review", "completed"]


class JobUpdateCreate(BaseModel):
    update_type: UpdateType = "progress"
    milestone: Milestone | None = None
    content: str | None = Field(None, max_length=2000)
    photos: list[str] = []

    @model_validator(mode="after")
    def has_payload(self):
        if self.content is not None:
            self.content = self.content.strip() or None
        self.photos = [p.strip() for p in self.photos if p.strip()]
        if not (self.content or self.milestone or self.photos):
            raise ValueError("An update needs content, a milestone or photos")
        if self.update_type == "milestone" and not self.milestone:
            raise ValueError("Milestone updates must name a milestone")
        if self.update_type == "photo" and not self.photos:
            raise ValueError("Photo updates must include at least one photo")
        return self


class JobUpdateResponse(BaseModel):
    id: str
    job_id: str
    professional_id: str
    update_type: str
    milestone: str | None
    content: str | None
    photos: list[str]
    created_at: str
