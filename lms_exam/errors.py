"""Domain errors raised by the examination services.

The app entry point turns every ``ExaminationError`` into a JSON response with
``status_code`` and ``{"detail": message}``.
"""


class ExaminationError(Exception):
    status_code = 400
    default_message = "Examination request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ExaminationError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ExaminationError):
    status_code = 409
    default_message = "You have already attempted this examination"


class ValidationError(ExaminationError):
    status_code = 422
    default_message = "Invalid input"


class PermissionDeniedError(ExaminationError):
    status_code = 403
    default_message = "You do not have permission to grade this examination"


class PersistenceError(ExaminationError):
    """Write failed and was rolled back; safe to retry."""

    status_code = 500
    default_message = "Failed to save examination data, please try again"
