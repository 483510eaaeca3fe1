"""
Domain errors raised by the maintenance services.
Routers never catch these — the handlers in app.main turn them into HTTP responses.
"""


class MaintenanceError(Exception):
    """Base class for all domain errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MaintenanceError):
    status_code = 404


class ValidationError(MaintenanceError):
    status_code = 400


class ConflictError(MaintenanceError):
    status_code = 409
