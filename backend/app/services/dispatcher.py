import logging
import uuid

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.errors import DependencyFailure
from app.models.conversation import Conversation, Message
from app.models.notification import Notification
from app.services.lifecycle import Notify, OpenConversation
from app.utils.clock import utc_now

logger = logging.getLogger("app.dispatcher")


class SideEffectDispatcher:
    """Runs the follow-up writes of a committed transition.

    Each command gets its own session. A failing command is logged and
    reported as a warning; it never undoes or fails the transition itself.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    @property
    def session_factory(self):
        if self._session_factory is None:
            from app.database import SessionLocal
            return SessionLocal
        return self._session_factory

    @session_factory.setter
    def session_factory(self, factory):
        self._session_factory = factory

    def ensure_conversation(self, db: Session, job_id: str, course_id: str, professional_id: str) -> Conversation:
        db.execute(
            text(
                """
                INSERT INTO job_conversations (id, job_id, course_id, professional_id, created_at)
                VALUES (:id, :job_id, :course_id, :professional_id, :now)
                ON CONFLICT(job_id) DO NOTHING
                """
            ),
            {
                "id": str(uuid.uuid4()),
                "job_id": job_id,
                "course_id": course_id,
                "professional_id": professional_id,
                "now": utc_now(),
            },
        )
        db.commit()
        return db.query(Conversation).filter(Conversation.job_id == job_id).one()

    def post_system_message(self, db: Session, conversation_id: str, sender_id: str, text: str) -> Message:
        conversation = db.query(Conversation).filter(Conversation.id == conversation_id).one()
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            job_id=conversation.job_id,
            sender_id=sender_id,
            content=text,
            message_type="system",
            created_at=utc_now(),
        )
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def notify(
        self,
        db: Session,
        user_id: str,
        type: str,
        title: str,
        message: str,
        metadata: dict | None = None,
    ) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            meta=metadata or {},
            created_at=utc_now(),
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    def dispatch(self, effects) -> list[str]:
        warnings: list[str] = []
        for effect in effects:
            db = self.session_factory()
            try:
                self._run(db, effect)
            except Exception as exc:
                db.rollback()
                failure = DependencyFailure(f"{effect.describe()} failed: {exc}")
                logger.warning("Side effect dropped: %s", failure.message, exc_info=True)
                warnings.append(failure.message)
            finally:
                db.close()
        return warnings

    def _run(self, db: Session, effect) -> None:
        if isinstance(effect, Notify):
            self.notify(db, effect.user_id, effect.type, effect.title, effect.message, effect.metadata)
        elif isinstance(effect, OpenConversation):
            conversation = self.ensure_conversation(db, effect.job_id, effect.course_id, effect.professional_id)
            # Re-running the effect must not post the welcome twice
            if not conversation.messages:
                self.post_system_message(db, conversation.id, effect.course_id, effect.welcome_text)
        else:
            raise TypeError(f"Unknown side effect {effect!r}")


dispatcher = SideEffectDispatcher()
