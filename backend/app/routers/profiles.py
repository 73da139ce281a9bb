from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.errors import Conflict, NotFound
from app.models.profile import Profile
from app.schemas.common import DataResponse
from app.schemas.profile import ProfileResponse, ProfileUpsert
from app.services.identity_service import CurrentUser
from app.utils.clock import utc_now

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _profile_to_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        user_type=profile.user_type,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


@router.get("/me", response_model=DataResponse[ProfileResponse])
async def get_my_profile(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if not profile:
        raise NotFound("Profile not found")
    return DataResponse(data=_profile_to_response(profile))


@router.put("/me", response_model=DataResponse[ProfileResponse])
async def upsert_my_profile(
    req: ProfileUpsert,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    now = utc_now()
    profile = db.query(Profile).filter(Profile.id == user.id).first()
    if profile is None:
        profile = Profile(
            id=user.id,
            email=user.email,
            full_name=req.full_name,
            user_type=req.user_type,
            created_at=now,
            updated_at=now,
        )
        db.add(profile)
    else:
        if profile.user_type != req.user_type:
            raise Conflict("Account type cannot be changed once set")
        if req.full_name is not None:
            profile.full_name = req.full_name
        if user.email:
            profile.email = user.email
        profile.updated_at = now
    db.commit()
    db.refresh(profile)
    return DataResponse(data=_profile_to_response(profile))
