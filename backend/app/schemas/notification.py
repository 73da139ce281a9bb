from typing import Any

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    metadata: dict[str, Any]
    read_at: str | None
    created_at: str
