class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InvalidInputError(AppError):
    """Raised for malformed times, inverted ranges or unparseable dates."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ForbiddenError(AppError):
    """Raised when the acting teacher may not perform the requested transition."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=403, details=details)

class NotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str, message: str | None = None):
        super().__init__(
            message or f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ConflictError(AppError):
    """Raised when a write would duplicate an active record or break the state machine."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)
