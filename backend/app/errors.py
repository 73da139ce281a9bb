"""Domain errors raised by the service layer.

Each error knows the HTTP status it maps to; ``app.main`` renders them as
``{"error": {"code", "message", "details"}}``.
"""


class ServiceError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return {"error": body}


class ValidationError(ServiceError):
    status_code = 400
    code = "validation_error"


class Unauthenticated(ServiceError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class InvalidState(ServiceError):
    status_code = 409
    code = "invalid_state"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"


class DependencyFailure(ServiceError):
    """A collaborator (notification, conversation, geo search) failed."""

    status_code = 503
    code = "dependency_failure"
