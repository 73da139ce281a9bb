from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.database import Base


class Conversation(Base):
    __tablename__ = "job_conversations"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, unique=True)
    course_id = Column(Text, nullable=False)
    professional_id = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)

    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(Text, primary_key=True)
    conversation_id = Column(Text, ForeignKey("job_conversations.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text)
    sender_id = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(Text, nullable=False, default="text")
    created_at = Column(Text, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
