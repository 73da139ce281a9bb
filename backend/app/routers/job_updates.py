from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_actor
from app.models.job_update import JobUpdate
from app.schemas.common import DataResponse
from app.schemas.job_update import JobUpdateCreate, JobUpdateResponse
from app.services.identity_service import Actor
from app.services.progress_service import progress_service

router = APIRouter(prefix="/jobs/{job_id}/updates", tags=["progress"])


def _update_to_response(update: JobUpdate) -> JobUpdateResponse:
    return JobUpdateResponse(
        id=update.id,
        job_id=update.job_id,
        professional_id=update.professional_id,
        update_type=update.update_type,
        milestone=update.milestone,
        content=update.content,
        photos=update.photos or [],
        created_at=update.created_at,
    )


@router.post("", response_model=DataResponse[JobUpdateResponse], status_code=201)
async def post_update(
    job_id: str,
    req: JobUpdateCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    update, warnings = progress_service.post_update(db, actor, job_id, req)
    return DataResponse(data=_update_to_response(update), warnings=warnings)


@router.get("", response_model=DataResponse[list[JobUpdateResponse]])
async def list_updates(job_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    updates = progress_service.list_updates(db, actor, job_id)
    return DataResponse(data=[_update_to_response(u) for u in updates])
