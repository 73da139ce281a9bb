import logging
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.errors import Forbidden, InvalidState, NotFound, ValidationError
from app.models.application import Application
from app.models.job import Job
from app.models.job_update import JobUpdate
from app.schemas.job import JobCreate, JobPatch
from app.services import lifecycle
from app.services.dispatcher import SideEffectDispatcher, dispatcher
from app.services.identity_service import Actor
from app.utils.clock import utc_now

logger = logging.getLogger("app.jobs")

FROZEN_STATUSES = (lifecycle.JOB_COMPLETED, lifecycle.JOB_CANCELLED)


class JobService:
    def __init__(self, dispatcher: SideEffectDispatcher):
        self.dispatcher = dispatcher

    def _get(self, db: Session, job_id: str) -> Job:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found")
        return job

    def get_owned(self, db: Session, actor: Actor, job_id: str) -> Job:
        job = self._get(db, job_id)
        if job.course_id != actor.id:
            raise Forbidden("Only the course that posted this job can change it")
        return job

    def get_visible(self, db: Session, actor: Actor, job_id: str) -> Job:
        job = self._get(db, job_id)
        if job.course_id == actor.id or job.status == lifecycle.JOB_OPEN:
            return job
        has_applied = (
            db.query(Application)
            .filter(Application.job_id == job.id, Application.professional_id == actor.id)
            .first()
            is not None
        )
        if not has_applied:
            raise Forbidden("Job is not available")
        return job

    def create(self, db: Session, actor: Actor, req: JobCreate) -> Job:
        if not actor.is_course:
            raise Forbidden("Only golf courses can post jobs")

        now = utc_now()
        job = Job(
            id=str(uuid.uuid4()),
            course_id=actor.id,
            title=req.title,
            description=req.description,
            job_type=req.job_type,
            latitude=req.location.lat,
            longitude=req.location.lng,
            address=req.location.address,
            start_date=req.start_date.isoformat(),
            end_date=req.end_date.isoformat() if req.end_date else None,
            hourly_rate=req.hourly_rate,
            required_certifications=req.required_certifications,
            required_experience=req.required_experience,
            urgency_level=req.urgency_level,
            status=lifecycle.JOB_OPEN,
            created_at=now,
            updated_at=now,
        )
        db.add(job)
        db.commit()
        db.refresh(job)
        logger.info("Job created | id=%s | course=%s", job.id, actor.id)
        return job

    def update(self, db: Session, actor: Actor, job_id: str, patch: JobPatch) -> Job:
        job = self.get_owned(db, actor, job_id)
        if job.status in FROZEN_STATUSES:
            raise InvalidState(f"Cannot edit a {job.status} job")

        update_data = patch.model_dump(exclude_unset=True)
        location = update_data.pop("location", None)
        if location is not None:
            job.latitude = location["lat"]
            job.longitude = location["lng"]
            job.address = location["address"]
        for key in ("start_date", "end_date"):
            if key in update_data and update_data[key] is not None:
                update_data[key] = update_data[key].isoformat()

        start_date = update_data.get("start_date", job.start_date)
        end_date = update_data.get("end_date", job.end_date)
        if end_date is not None and end_date <= start_date:
            raise ValidationError(
                "End date must be after start date",
                details=[{"loc": ["body", "end_date"], "msg": "End date must be after start date"}],
            )

        for key, value in update_data.items():
            if value is None and key in ("title", "description", "job_type", "start_date",
                                         "hourly_rate", "required_certifications", "urgency_level"):
                continue  # required columns cannot be cleared
            setattr(job, key, value)
        job.updated_at = utc_now()

        db.commit()
        db.refresh(job)
        return job

    def _void_live_applications(self, db: Session, job: Job, now: str) -> list[str]:
        live = (
            db.query(Application)
            .filter(Application.job_id == job.id, Application.status.in_(lifecycle.LIVE_STATUSES))
            .all()
        )
        for application in live:
            application.status = lifecycle.REJECTED
            application.updated_at = now
        return [a.professional_id for a in live]

    def _cancellation_effects(self, job_id: str, title: str, professional_ids: list[str]) -> list:
        return [
            lifecycle.Notify(
                user_id=pid,
                type="job_cancelled",
                title="Job Cancelled",
                message=f'The job "{title}" has been cancelled.',
                metadata={"job_id": job_id, "job_title": title},
            )
            for pid in dict.fromkeys(professional_ids)
        ]

    def cancel(self, db: Session, actor: Actor, job_id: str) -> tuple[Job, list[str]]:
        job = self.get_owned(db, actor, job_id)
        if job.status in FROZEN_STATUSES:
            raise InvalidState(f"Cannot cancel a {job.status} job")

        now = utc_now()
        affected = self._void_live_applications(db, job, now)
        confirmed = (
            db.query(Application.professional_id)
            .filter(Application.job_id == job.id, Application.status == lifecycle.ACCEPTED_BY_PROFESSIONAL)
            .scalar()
        )
        if confirmed:
            affected.append(confirmed)

        job.status = lifecycle.JOB_CANCELLED
        job.cancelled_at = now
        job.updated_at = now
        db.commit()
        db.refresh(job)
        logger.info("Job cancelled | id=%s | voided=%d", job.id, len(affected))

        warnings = self.dispatcher.dispatch(self._cancellation_effects(job.id, job.title, affected))
        return job, warnings

    def delete(self, db: Session, actor: Actor, job_id: str) -> tuple[Job | None, list[str]]:
        """Delete an open job outright; an in-progress job is soft-terminated instead.

        Returns the cancelled job, or None when the row was removed.
        """
        job = self.get_owned(db, actor, job_id)
        if job.status in FROZEN_STATUSES:
            raise InvalidState(f"Cannot delete a {job.status} job")
        if job.status == lifecycle.JOB_IN_PROGRESS:
            return self.cancel(db, actor, job_id)

        affected = [
            a.professional_id for a in job.applications if a.status in lifecycle.LIVE_STATUSES
        ]
        title = job.title
        db.delete(job)
        db.commit()
        logger.info("Job deleted | id=%s | voided=%d", job_id, len(affected))

        warnings = self.dispatcher.dispatch(self._cancellation_effects(job_id, title, affected))
        return None, warnings

    def list_jobs(
        self,
        db: Session,
        actor: Actor,
        status: str | None = None,
        job_type: str | None = None,
        urgency_level: str | None = None,
        min_rate: float | None = None,
        max_rate: float | None = None,
        mine: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Job], int]:
        query = db.query(Job)

        if mine and actor.is_course:
            query = query.filter(Job.course_id == actor.id)
        elif mine:
            query = query.join(Application, Application.job_id == Job.id).filter(
                Application.professional_id == actor.id
            )
        else:
            query = query.filter(Job.status == lifecycle.JOB_OPEN)

        if status:
            query = query.filter(Job.status == status)
        if job_type:
            query = query.filter(Job.job_type == job_type)
        if urgency_level:
            query = query.filter(Job.urgency_level == urgency_level)
        if min_rate is not None:
            query = query.filter(Job.hourly_rate >= min_rate)
        if max_rate is not None:
            query = query.filter(Job.hourly_rate <= max_rate)

        total = query.count()
        jobs = query.order_by(Job.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()
        return jobs, total

    def list_by_ids(self, db: Session, job_ids: list[str]) -> list[Job]:
        if not job_ids:
            return []
        jobs = db.query(Job).filter(Job.id.in_(job_ids), Job.status == lifecycle.JOB_OPEN).all()
        order = {job_id: i for i, job_id in enumerate(job_ids)}
        return sorted(jobs, key=lambda j: order[j.id])

    def list_active(self, db: Session, actor: Actor) -> list[tuple[Job, int, str | None]]:
        query = db.query(Job).filter(Job.status == lifecycle.JOB_IN_PROGRESS)
        if actor.is_course:
            query = query.filter(Job.course_id == actor.id)
        else:
            query = query.join(Application, Application.job_id == Job.id).filter(
                Application.professional_id == actor.id,
                Application.status == lifecycle.ACCEPTED_BY_PROFESSIONAL,
            )

        results = []
        for job in query.order_by(Job.updated_at.desc()).all():
            count, last = (
                db.query(func.count(JobUpdate.id), func.max(JobUpdate.created_at))
                .filter(JobUpdate.job_id == job.id)
                .one()
            )
            results.append((job, count, last))
        return results

    def application_count(self, db: Session, job: Job) -> int:
        return db.query(func.count(Application.id)).filter(Application.job_id == job.id).scalar()


job_service = JobService(dispatcher)
