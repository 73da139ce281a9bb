from typing import Literal

from pydantic import BaseModel, Field


class ProfileUpsert(BaseModel):
    user_type: Literal["course", "professional"]
    full_name: str | None = Field(None, max_length=200)


class ProfileResponse(BaseModel):
    id: str
    email: str | None
    full_name: str | None
    user_type: str
    created_at: str
    updated_at: str
