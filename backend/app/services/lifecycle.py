"""Application lifecycle state machine.

The functions here decide what a request is allowed to do and return a plan;
they never touch the database. ``application_service`` commits the plan as a
single write and then hands ``Transition.effects`` to the side-effect
dispatcher.

    pending --accept--> accepted_by_course --confirm--> accepted_by_professional
       |                       |
       +--reject--> rejected <-+--decline

A ``pending`` application may also be withdrawn (deleted) by its applicant.
"""

from dataclasses import dataclass, field
from typing import Any

from app.config import settings
from app.errors import Conflict, Forbidden, InvalidState
from app.services.identity_service import Actor

PENDING = "pending"
ACCEPTED_BY_COURSE = "accepted_by_course"
ACCEPTED_BY_PROFESSIONAL = "accepted_by_professional"
REJECTED = "rejected"

APPLICATION_STATUSES = (PENDING, ACCEPTED_BY_COURSE, ACCEPTED_BY_PROFESSIONAL, REJECTED)
TERMINAL_STATUSES = frozenset({ACCEPTED_BY_PROFESSIONAL, REJECTED})
LIVE_STATUSES = (PENDING, ACCEPTED_BY_COURSE)

JOB_OPEN = "open"
JOB_IN_PROGRESS = "in_progress"
JOB_COMPLETED = "completed"
JOB_CANCELLED = "cancelled"

COURSE_ACTIONS = frozenset({"accept", "reject"})
PROFESSIONAL_ACTIONS = frozenset({"confirm", "decline", "withdraw"})

TRANSITIONS: dict[str, dict[str, str]] = {
    PENDING: {"accept": ACCEPTED_BY_COURSE, "reject": REJECTED},
    ACCEPTED_BY_COURSE: {"confirm": ACCEPTED_BY_PROFESSIONAL, "decline": REJECTED},
}


def next_states(status: str) -> set[str]:
    return set(TRANSITIONS.get(status, {}).values())


# -- side-effect commands ----------------------------------------------------


@dataclass(frozen=True)
class Notify:
    user_id: str
    type: str
    title: str
    message: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        return f"notification {self.type} for {self.user_id}"


@dataclass(frozen=True)
class OpenConversation:
    job_id: str
    course_id: str
    professional_id: str
    welcome_text: str

    def describe(self) -> str:
        return f"conversation for job {self.job_id}"


@dataclass(frozen=True)
class Transition:
    application_id: str
    action: str
    from_status: str
    to_status: str
    job_status: str | None = None
    reject_siblings: bool = False
    effects: tuple = ()


# -- planning ----------------------------------------------------------------


def authorize(application, job, actor: Actor, action: str) -> None:
    """Course-side actions belong to the job owner, professional-side ones to the applicant."""
    if action in COURSE_ACTIONS:
        if actor.id != job.course_id:
            raise Forbidden("Only the course that posted this job can do that")
    elif action in PROFESSIONAL_ACTIONS:
        if actor.id != application.professional_id:
            raise Forbidden("Only the applicant can do that")
    else:
        raise InvalidState(f"Unknown action '{action}'")


def plan_submission(job, actor: Actor, already_applied: bool) -> tuple:
    """Check a new application and return the effects it triggers."""
    if not actor.is_professional:
        raise Forbidden("Only professionals can apply to jobs")
    if job.status != JOB_OPEN:
        raise InvalidState("Job is no longer accepting applications")
    if actor.id == job.course_id:
        raise Forbidden("You cannot apply to your own job")
    if already_applied:
        raise Conflict("You have already applied to this job")
    return (
        Notify(
            user_id=job.course_id,
            type="application_received",
            title="New Application",
            message=f'A professional applied to "{job.title}".',
            metadata={"job_id": job.id, "professional_id": actor.id},
        ),
    )


def plan_transition(
    application,
    job,
    actor: Actor,
    action: str,
    outstanding_offer: bool = False,
    welcome_text: str | None = None,
) -> Transition:
    authorize(application, job, actor, action)

    allowed = TRANSITIONS.get(application.status, {})
    if action not in allowed:
        raise InvalidState(f"Cannot {action} an application that is {application.status}")
    to_status = allowed[action]
    metadata = {"job_id": job.id, "application_id": application.id}

    if action == "accept":
        if job.status != JOB_OPEN:
            raise InvalidState(f"Job is {job.status}; only open jobs can accept applicants")
        if outstanding_offer:
            raise InvalidState("Another applicant has an offer awaiting confirmation")
        return Transition(
            application_id=application.id,
            action=action,
            from_status=application.status,
            to_status=to_status,
            reject_siblings=True,
            effects=(
                Notify(
                    user_id=application.professional_id,
                    type="application_accepted",
                    title="Application Accepted",
                    message=f'Your application for "{job.title}" was accepted. Confirm to take the job.',
                    metadata=metadata,
                ),
            ),
        )

    if action == "confirm":
        if job.status != JOB_OPEN:
            raise InvalidState(f"Job is {job.status}; it can no longer be confirmed")
        return Transition(
            application_id=application.id,
            action=action,
            from_status=application.status,
            to_status=to_status,
            job_status=JOB_IN_PROGRESS,
            effects=(
                OpenConversation(
                    job_id=job.id,
                    course_id=job.course_id,
                    professional_id=application.professional_id,
                    welcome_text=welcome_text or settings.welcome_message,
                ),
                Notify(
                    user_id=application.professional_id,
                    type="job_confirmed",
                    title="Job Confirmed",
                    message=f'You confirmed "{job.title}". You can now message the course and post progress.',
                    metadata=metadata,
                ),
                Notify(
                    user_id=job.course_id,
                    type="job_accepted",
                    title="Job Accepted by Professional",
                    message=f'The professional has accepted the job "{job.title}". You can now communicate and track progress.',
                    metadata={**metadata, "professional_id": application.professional_id},
                ),
            ),
        )

    if action == "decline":
        return Transition(
            application_id=application.id,
            action=action,
            from_status=application.status,
            to_status=to_status,
            effects=(
                Notify(
                    user_id=job.course_id,
                    type="job_declined",
                    title="Job Declined",
                    message=f'The professional declined the job "{job.title}". It is still open to other applicants.',
                    metadata=metadata,
                ),
            ),
        )

    # reject
    return Transition(
        application_id=application.id,
        action=action,
        from_status=application.status,
        to_status=to_status,
    )


def plan_withdrawal(application, job, actor: Actor) -> None:
    authorize(application, job, actor, "withdraw")
    if application.status != PENDING:
        raise InvalidState("Only pending applications can be withdrawn")
