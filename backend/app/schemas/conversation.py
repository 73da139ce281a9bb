from pydantic import BaseModel, Field


class ConversationResponse(BaseModel):
    id: str
    job_id: str
    course_id: str
    professional_id: str
    created_at: str
    message_count: int = 0


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    job_id: str | None
    sender_id: str
    content: str
    message_type: str
    created_at: str
