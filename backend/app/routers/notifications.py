from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_actor
from app.models.notification import Notification
from app.schemas.common import DataResponse
from app.schemas.notification import NotificationResponse
from app.services.identity_service import Actor

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=DataResponse[list[NotificationResponse]])
async def list_notifications(
    unread: bool = False,
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.user_id == actor.id)
    if unread:
        query = query.filter(Notification.read_at.is_(None))
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
    return DataResponse(data=[
        NotificationResponse(
            id=n.id,
            user_id=n.user_id,
            type=n.type,
            title=n.title,
            message=n.message,
            metadata=n.meta or {},
            read_at=n.read_at,
            created_at=n.created_at,
        )
        for n in notifications
    ])
