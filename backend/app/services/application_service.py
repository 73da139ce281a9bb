import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import Conflict, Forbidden, InvalidState, NotFound
from app.models.application import Application
from app.models.job import Job
from app.schemas.application import ApplicationCreate
from app.services import lifecycle
from app.services.dispatcher import SideEffectDispatcher, dispatcher
from app.services.identity_service import Actor
from app.utils.clock import utc_now

logger = logging.getLogger("app.lifecycle")


class ApplicationService:
    def __init__(self, dispatcher: SideEffectDispatcher):
        self.dispatcher = dispatcher

    def _get(self, db: Session, application_id: str) -> Application:
        application = db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFound("Application not found")
        return application

    def submit(self, db: Session, actor: Actor, req: ApplicationCreate) -> tuple[Application, list[str]]:
        job = db.query(Job).filter(Job.id == req.job_id).first()
        if not job:
            raise NotFound("Job not found")

        already_applied = (
            db.query(Application)
            .filter(Application.job_id == job.id, Application.professional_id == actor.id)
            .first()
            is not None
        )
        effects = lifecycle.plan_submission(job, actor, already_applied)

        now = utc_now()
        application = Application(
            id=str(uuid.uuid4()),
            job_id=job.id,
            professional_id=actor.id,
            message=req.message,
            proposed_rate=req.proposed_rate,
            status=lifecycle.PENDING,
            applied_at=now,
            updated_at=now,
        )
        db.add(application)
        try:
            db.commit()
        except IntegrityError as exc:
            # UNIQUE(job_id, professional_id) caught a concurrent duplicate
            db.rollback()
            raise Conflict("You have already applied to this job") from exc
        db.refresh(application)
        logger.info("Application submitted | id=%s | job=%s | professional=%s", application.id, job.id, actor.id)

        warnings = self.dispatcher.dispatch(effects)
        return application, warnings

    def transition(self, db: Session, actor: Actor, application_id: str, action: str) -> tuple[Application, list[str]]:
        application = self._get(db, application_id)
        job = application.job

        outstanding_offer = False
        if action == "accept":
            outstanding_offer = (
                db.query(Application)
                .filter(
                    Application.job_id == job.id,
                    Application.id != application.id,
                    Application.status == lifecycle.ACCEPTED_BY_COURSE,
                )
                .first()
                is not None
            )

        plan = lifecycle.plan_transition(application, job, actor, action, outstanding_offer=outstanding_offer)
        self._apply(db, job, plan)

        db.refresh(application)
        logger.info(
            "Application transition | id=%s | %s -> %s | actor=%s",
            application.id, plan.from_status, plan.to_status, actor.id,
        )
        warnings = self.dispatcher.dispatch(plan.effects)
        return application, warnings

    def _apply(self, db: Session, job: Job, plan: lifecycle.Transition) -> None:
        """Write the status change, the sibling sweep and the job change in one commit."""
        now = utc_now()
        updated = (
            db.query(Application)
            .filter(Application.id == plan.application_id, Application.status == plan.from_status)
            .update({"status": plan.to_status, "updated_at": now}, synchronize_session=False)
        )
        if updated != 1:
            db.rollback()
            raise InvalidState("Application was changed by another request; reload and retry")

        if plan.reject_siblings:
            swept = (
                db.query(Application)
                .filter(
                    Application.job_id == job.id,
                    Application.id != plan.application_id,
                    Application.status == lifecycle.PENDING,
                )
                .update({"status": lifecycle.REJECTED, "updated_at": now}, synchronize_session=False)
            )
            logger.info("Rejected %d sibling application(s) on job %s", swept, job.id)

        job_values = {"updated_at": now}
        if plan.job_status:
            job_values["status"] = plan.job_status
        moved = (
            db.query(Job)
            .filter(Job.id == job.id, Job.status == lifecycle.JOB_OPEN)
            .update(job_values, synchronize_session=False)
        )
        if plan.job_status and moved != 1:
            db.rollback()
            raise InvalidState("Job is no longer open")

        db.commit()

    def withdraw(self, db: Session, actor: Actor, application_id: str) -> None:
        application = self._get(db, application_id)
        lifecycle.plan_withdrawal(application, application.job, actor)

        deleted = (
            db.query(Application)
            .filter(Application.id == application.id, Application.status == lifecycle.PENDING)
            .delete(synchronize_session=False)
        )
        if deleted != 1:
            db.rollback()
            raise InvalidState("Only pending applications can be withdrawn")
        db.commit()
        logger.info("Application withdrawn | id=%s | professional=%s", application_id, actor.id)

    def get(self, db: Session, actor: Actor, application_id: str) -> Application:
        application = self._get(db, application_id)
        if actor.id not in (application.professional_id, application.job.course_id):
            raise Forbidden("Not authorized to view this application")
        return application

    def list_for_actor(self, db: Session, actor: Actor, status: str | None = None) -> list[Application]:
        query = db.query(Application)
        if actor.is_professional:
            query = query.filter(Application.professional_id == actor.id)
        else:
            query = query.join(Job, Job.id == Application.job_id).filter(Job.course_id == actor.id)
        if status:
            query = query.filter(Application.status == status)
        return query.order_by(Application.applied_at.desc()).all()

    def list_for_job(self, db: Session, actor: Actor, job_id: str, status: str | None = None) -> list[Application]:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found")
        if job.course_id != actor.id:
            raise Forbidden("Only the course that posted this job can see its applications")
        query = db.query(Application).filter(Application.job_id == job_id)
        if status:
            query = query.filter(Application.status == status)
        return query.order_by(Application.applied_at.desc()).all()


application_service = ApplicationService(dispatcher)
