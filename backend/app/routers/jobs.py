from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_actor
from app.models.job import Job
from app.schemas.common import DataResponse
from app.schemas.job import (
    ActiveJobResponse,
    JobCreate,
    JobListResponse,
    JobPatch,
    JobResponse,
    JobStatus,
    JobStatusChange,
    JobType,
    Location,
    UrgencyLevel,
)
from app.services import geo_service
from app.services.identity_service import Actor
from app.services.job_service import job_service
from app.services.progress_service import progress_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _job_to_response(job: Job, db: Session) -> JobResponse:
    return JobResponse(
        id=job.id,
        course_id=job.course_id,
        title=job.title,
        description=job.description,
        job_type=job.job_type,
        location=Location(lat=job.latitude, lng=job.longitude, address=job.address),
        start_date=job.start_date,
        end_date=job.end_date,
        hourly_rate=job.hourly_rate,
        required_certifications=job.required_certifications or [],
        required_experience=job.required_experience,
        urgency_level=job.urgency_level,
        status=job.status,
        completion_notes=job.completion_notes,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        cancelled_at=job.cancelled_at,
        application_count=job_service.application_count(db, job),
    )


@router.post("", response_model=DataResponse[JobResponse], status_code=201)
async def create_job(req: JobCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    job = job_service.create(db, actor, req)
    return DataResponse(data=_job_to_response(job, db))


@router.get("", response_model=DataResponse[JobListResponse])
async def list_jobs(
    status: JobStatus | None = None,
    job_type: JobType | None = None,
    urgency_level: UrgencyLevel | None = None,
    min_rate: float | None = Query(None, ge=0),
    max_rate: float | None = Query(None, ge=0),
    mine: bool = False,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    jobs, total = job_service.list_jobs(
        db, actor,
        status=status,
        job_type=job_type,
        urgency_level=urgency_level,
        min_rate=min_rate,
        max_rate=max_rate,
        mine=mine,
        page=page,
        per_page=per_page,
    )
    return DataResponse(data=JobListResponse(
        jobs=[_job_to_response(j, db) for j in jobs],
        total=total,
        page=page,
        per_page=per_page,
    ))


@router.get("/search", response_model=DataResponse[list[JobResponse]])
async def search_nearby(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(25, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    job_ids = geo_service.jobs_within_distance(db, lat, lng, radius)
    jobs = job_service.list_by_ids(db, job_ids)
    return DataResponse(data=[_job_to_response(j, db) for j in jobs])


@router.get("/active", response_model=DataResponse[list[ActiveJobResponse]])
async def list_active_jobs(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    results = []
    for job, updates_count, last_update_at in job_service.list_active(db, actor):
        base = _job_to_response(job, db)
        results.append(ActiveJobResponse(
            **base.model_dump(),
            updates_count=updates_count,
            last_update_at=last_update_at or job.updated_at,
        ))
    return DataResponse(data=results)


@router.get("/{job_id}", response_model=DataResponse[JobResponse])
async def get_job(job_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    job = job_service.get_visible(db, actor, job_id)
    return DataResponse(data=_job_to_response(job, db))


@router.put("/{job_id}", response_model=DataResponse[JobResponse])
async def update_job(job_id: str, req: JobPatch, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    job = job_service.update(db, actor, job_id, req)
    return DataResponse(data=_job_to_response(job, db))


@router.delete("/{job_id}")
async def delete_job(job_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    job, warnings = job_service.delete(db, actor, job_id)
    if job is None:
        return {"data": {"id": job_id, "deleted": True, "status": None}, "warnings": warnings}
    return {"data": {"id": job.id, "deleted": False, "status": job.status}, "warnings": warnings}


@router.patch("/{job_id}/status", response_model=DataResponse[JobResponse])
async def change_job_status(
    job_id: str,
    req: JobStatusChange,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    if req.action == "start":
        _update, warnings = progress_service.start_work(db, actor, job_id)
        job = job_service.get_visible(db, actor, job_id)
    elif req.action == "complete":
        job, warnings = progress_service.complete_work(db, actor, job_id, req.completion_notes)
    else:
        job, warnings = job_service.cancel(db, actor, job_id)
    return DataResponse(data=_job_to_response(job, db), warnings=warnings)
