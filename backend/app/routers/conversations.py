import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_actor
from app.errors import Forbidden, NotFound
from app.models.conversation import Conversation, Message
from app.schemas.common import DataResponse
from app.schemas.conversation import ConversationResponse, MessageCreate, MessageResponse
from app.services.identity_service import Actor
from app.utils.clock import utc_now

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _conversation_to_response(conversation: Conversation, db: Session) -> ConversationResponse:
    count = db.query(func.count(Message.id)).filter(Message.conversation_id == conversation.id).scalar()
    return ConversationResponse(
        id=conversation.id,
        job_id=conversation.job_id,
        course_id=conversation.course_id,
        professional_id=conversation.professional_id,
        created_at=conversation.created_at,
        message_count=count,
    )


def _message_to_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        job_id=message.job_id,
        sender_id=message.sender_id,
        content=message.content,
        message_type=message.message_type,
        created_at=message.created_at,
    )


def _get_participating(db: Session, actor: Actor, conversation_id: str) -> Conversation:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise NotFound("Conversation not found")
    if actor.id not in (conversation.course_id, conversation.professional_id):
        raise Forbidden("Not a participant in this conversation")
    return conversation


@router.get("", response_model=DataResponse[list[ConversationResponse]])
async def list_conversations(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    conversations = (
        db.query(Conversation)
        .filter(or_(Conversation.course_id == actor.id, Conversation.professional_id == actor.id))
        .order_by(Conversation.created_at.desc())
        .all()
    )
    return DataResponse(data=[_conversation_to_response(c, db) for c in conversations])


@router.get("/{conversation_id}/messages", response_model=DataResponse[list[MessageResponse]])
async def list_messages(conversation_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    conversation = _get_participating(db, actor, conversation_id)
    return DataResponse(data=[_message_to_response(m) for m in conversation.messages])


@router.post("/{conversation_id}/messages", response_model=DataResponse[MessageResponse], status_code=201)
async def send_message(
    conversation_id: str,
    req: MessageCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    conversation = _get_participating(db, actor, conversation_id)
    message = Message(
        id=str(uuid.uuid4()),
        conversation_id=conversation.id,
        job_id=conversation.job_id,
        sender_id=actor.id,
        content=req.content.strip(),
        message_type="text",
        created_at=utc_now(),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return DataResponse(data=_message_to_response(message))
