from app.models.profile import Profile
from app.models.job import Job
from app.models.application import Application
from app.models.job_update import JobUpdate
from app.models.conversation import Conversation, Message
from app.models.notification import Notification

__all__ = ["Profile", "Job", "Application", "JobUpdate", "Conversation", "Message", "Notification"]
