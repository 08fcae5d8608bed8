"""
Typed failures raised by the service layer.

Each error carries a machine-readable ``kind`` and a human-readable
``message``.  ``blog_cms.main`` maps them onto HTTP responses; service
functions never build HTTP responses themselves.
"""


class ServiceError(Exception):
    """Base class for every failure reported to API callers."""

    kind: str = "SERVICE_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    """Input fails a schema constraint; raised before any write."""

    kind = "VALIDATION_ERROR"
    status_code = 422


class NotFoundError(ServiceError):
    kind = "NOT_FOUND"
    status_code = 404


class ConflictError(ServiceError):
    """The store rejected the write (unique or foreign key constraint)."""

    kind = "CONFLICT"
    status_code = 409


class BusinessRuleError(ServiceError):
    """
    The request is well formed and targets an existing entity, but would
    break a domain rule (e.g. deleting a category that still has posts).
    """

    kind = "BUSINESS_RULE"
    status_code = 400
