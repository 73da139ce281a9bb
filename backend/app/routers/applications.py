from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_actor
from app.models.application import Application
from app.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationTransition,
)
from app.schemas.common import DataResponse
from app.services.application_service import application_service
from app.services.identity_service import Actor

router = APIRouter(prefix="/applications", tags=["applications"])


def _application_to_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        id=application.id,
        job_id=application.job_id,
        professional_id=application.professional_id,
        message=application.message,
        proposed_rate=application.proposed_rate,
        status=application.status,
        applied_at=application.applied_at,
        updated_at=application.updated_at,
        job_title=application.job.title if application.job else None,
    )


@router.post("", response_model=DataResponse[ApplicationResponse], status_code=201)
async def submit_application(req: ApplicationCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    application, warnings = application_service.submit(db, actor, req)
    return DataResponse(data=_application_to_response(application), warnings=warnings)


@router.get("", response_model=DataResponse[list[ApplicationResponse]])
async def list_my_applications(
    status: ApplicationStatus | None = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    applications = application_service.list_for_actor(db, actor, status)
    return DataResponse(data=[_application_to_response(a) for a in applications])


@router.get("/{application_id}", response_model=DataResponse[ApplicationResponse])
async def get_application(application_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    application = application_service.get(db, actor, application_id)
    return DataResponse(data=_application_to_response(application))


@router.patch("/{application_id}", response_model=DataResponse[ApplicationResponse])
async def transition_application(
    application_id: str,
    req: ApplicationTransition,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    application, warnings = application_service.transition(db, actor, application_id, req.action)
    return DataResponse(data=_application_to_response(application), warnings=warnings)


@router.delete("/{application_id}")
async def withdraw_application(application_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    application_service.withdraw(db, actor, application_id)
    return {"data": {"id": application_id, "withdrawn": True}, "warnings": []}


# Applications on a single job, for the course that posted it
job_applications_router = APIRouter(prefix="/jobs/{job_id}/applications", tags=["applications"])


@job_applications_router.get("", response_model=DataResponse[list[ApplicationResponse]])
async def list_job_applications(
    job_id: str,
    status: ApplicationStatus | None = None,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    applications = application_service.list_for_job(db, actor, job_id, status)
    return DataResponse(data=[_application_to_response(a) for a in applications])
