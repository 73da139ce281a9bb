from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import Forbidden, Unauthenticated
from app.models.profile import Profile
from app.services.identity_service import Actor, CurrentUser, identity_service


async def get_current_user(authorization: str | None = Header(None)) -> CurrentUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("Missing bearer token")
    return identity_service.verify(authorization[7:])


def get_actor(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Actor:
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if not profile:
        raise Forbidden("Complete your profile before using the marketplace")
    return Actor(id=profile.id, account_type=profile.user_type, email=user.email or profile.email)
