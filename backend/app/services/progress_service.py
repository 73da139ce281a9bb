import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import Forbidden, InvalidState, NotFound, ValidationError
from app.models.application import Application
from app.models.job import Job
from app.models.job_update import JobUpdate
from app.schemas.job_update import JobUpdateCreate
from app.services import lifecycle
from app.services.dispatcher import SideEffectDispatcher, dispatcher
from app.services.identity_service import Actor
from app.utils.clock import utc_now

logger = logging.getLogger("app.progress")

STARTED = "started"
COMPLETED = "completed"


class ProgressService:
    """Start, report on and complete work on a confirmed job.

    Checks run NotFound -> job state -> actor, so an update against a job that
    is not in progress is always an ``InvalidState``.
    """

    def __init__(self, dispatcher: SideEffectDispatcher):
        self.dispatcher = dispatcher

    def _get(self, db: Session, job_id: str) -> Job:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found")
        return job

    def _require_in_progress(self, job: Job) -> None:
        if job.status != lifecycle.JOB_IN_PROGRESS:
            raise InvalidState(f"Job is {job.status}; work can only be tracked while it is in progress")

    def confirmed_professional_id(self, db: Session, job: Job) -> str | None:
        return (
            db.query(Application.professional_id)
            .filter(Application.job_id == job.id, Application.status == lifecycle.ACCEPTED_BY_PROFESSIONAL)
            .scalar()
        )

    def _require_professional(self, db: Session, actor: Actor, job: Job) -> None:
        if actor.id != self.confirmed_professional_id(db, job):
            raise Forbidden("Only the professional confirmed on this job can do that")

    def has_started(self, db: Session, job_id: str) -> bool:
        return (
            db.query(JobUpdate)
            .filter(JobUpdate.job_id == job_id, JobUpdate.milestone == STARTED)
            .first()
            is not None
        )

    def _new_update(self, job: Job, actor: Actor, update_type: str, milestone: str | None = None,
                    content: str | None = None, photos: list[str] | None = None) -> JobUpdate:
        return JobUpdate(
            id=str(uuid.uuid4()),
            job_id=job.id,
            professional_id=actor.id,
            update_type=update_type,
            milestone=milestone,
            content=content,
            photos=photos or [],
            created_at=utc_now(),
        )

    def _commit_update(self, db: Session, update: JobUpdate) -> None:
        db.add(update)
        try:
            db.commit()
        except IntegrityError as exc:
            # idx_job_updates_started allows one "started" milestone per job
            db.rollback()
            raise InvalidState("Work on this job has already started") from exc

    def start_work(
        self,
        db: Session,
        actor: Actor,
        job_id: str,
        content: str | None = None,
        update_type: str = "milestone",
        photos: list[str] | None = None,
    ) -> tuple[JobUpdate, list[str]]:
        job = self._get(db, job_id)
        self._require_in_progress(job)
        self._require_professional(db, actor, job)
        if self.has_started(db, job.id):
            raise InvalidState("Work on this job has already started")

        update = self._new_update(
            job, actor, update_type, STARTED, content or "Job has been started by the professional.", photos
        )
        job.started_at = update.created_at
        job.updated_at = update.created_at
        self._commit_update(db, update)
        db.refresh(update)
        logger.info("Work started | job=%s | professional=%s", job.id, actor.id)

        warnings = self.dispatcher.dispatch([
            lifecycle.Notify(
                user_id=job.course_id,
                type="job_started",
                title="Job Started",
                message=f'Work on "{job.title}" has started.',
                metadata={"job_id": job.id},
            )
        ])
        return update, warnings

    def post_update(self, db: Session, actor: Actor, job_id: str, req: JobUpdateCreate) -> tuple[JobUpdate, list[str]]:
        if len(req.photos) > settings.max_photos_per_update:
            raise ValidationError(
                f"At most {settings.max_photos_per_update} photos per update",
                details=[{"loc": ["body", "photos"], "msg": "Too many photos"}],
            )
        if req.milestone == STARTED:
            return self.start_work(
                db, actor, job_id, content=req.content, update_type=req.update_type, photos=req.photos
            )

        job = self._get(db, job_id)
        self._require_in_progress(job)
        self._require_professional(db, actor, job)

        if req.milestone == COMPLETED:
            update = self._new_update(job, actor, req.update_type, COMPLETED, req.content, req.photos)
            db.add(update)
            job, warnings = self._complete(db, actor, job, req.content)
            db.refresh(update)
            return update, warnings

        update = self._new_update(job, actor, req.update_type, req.milestone, req.content, req.photos)
        job.updated_at = update.created_at
        self._commit_update(db, update)
        db.refresh(update)
        logger.info("Job update posted | job=%s | type=%s", job.id, update.update_type)
        return update, []

    def complete_work(self, db: Session, actor: Actor, job_id: str, completion_notes: str | None = None) -> tuple[Job, list[str]]:
        job = self._get(db, job_id)
        self._require_in_progress(job)
        professional_id = self.confirmed_professional_id(db, job)
        if actor.id not in (professional_id, job.course_id):
            raise Forbidden("Only the confirmed professional or the course can complete this job")

        if actor.id == professional_id:
            content = "Job has been marked as completed."
            if completion_notes:
                content = f"{content} {completion_notes}"
            db.add(self._new_update(job, actor, "milestone", COMPLETED, content))
        return self._complete(db, actor, job, completion_notes)

    def _complete(self, db: Session, actor: Actor, job: Job, completion_notes: str | None) -> tuple[Job, list[str]]:
        """Flip the job to completed together with any pending update row."""
        if not self.has_started(db, job.id):
            db.rollback()
            raise InvalidState("Work has not been started on this job")

        now = utc_now()
        values = {"status": lifecycle.JOB_COMPLETED, "completed_at": now, "updated_at": now}
        if completion_notes:
            values["completion_notes"] = completion_notes
        moved = (
            db.query(Job)
            .filter(Job.id == job.id, Job.status == lifecycle.JOB_IN_PROGRESS)
            .update(values, synchronize_session=False)
        )
        if moved != 1:
            db.rollback()
            raise InvalidState("Job is no longer in progress")
        db.commit()
        db.refresh(job)
        logger.info("Job completed | id=%s | by=%s", job.id, actor.id)

        other_party = job.course_id if actor.id != job.course_id else self.confirmed_professional_id(db, job)
        warnings = self.dispatcher.dispatch([
            lifecycle.Notify(
                user_id=other_party,
                type="job_completed",
                title="Job Completed",
                message=f'"{job.title}" has been marked as completed.',
                metadata={"job_id": job.id, "completion_notes": completion_notes},
            )
        ])
        return job, warnings

    def list_updates(self, db: Session, actor: Actor, job_id: str) -> list[JobUpdate]:
        job = self._get(db, job_id)
        if actor.id not in (job.course_id, self.confirmed_professional_id(db, job)):
            raise Forbidden("Not authorized to view updates for this job")
        return (
            db.query(JobUpdate)
            .filter(JobUpdate.job_id == job.id)
            .order_by(JobUpdate.created_at.asc())
            .all()
        )


progress_service = ProgressService(dispatcher)
