class AppError(Exception):
    """Base class for errors rendered as ``{"message", "details"}`` responses."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class MalformedWindowError(AppError, ValueError):
    """Raised when a weekly window has no days or does not end after it starts."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class FetchError(AppError):
    """Raised when enrollment or course data could not be loaded."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)


class ResolveError(AppError):
    """Raised when an enrollment cannot move from enrolled to dropped."""
    def __init__(self, enrollment_id: int, reason: str):
        super().__init__(
            f"Enrollment {enrollment_id} cannot be dropped: {reason}",
            status_code=409,
            details={"enrollment_id": enrollment_id, "reason": reason},
        )


class ResourceNotFoundError(AppError):
    def __init__(self, resource_type: str, resource_id):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
