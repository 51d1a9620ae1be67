from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind = "service_error"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(ServiceError):
    """Malformed identifier or code supplied by the caller."""

    kind = "validation_error"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFound(ServiceError):
    kind = "not_found"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class InvalidCode(ServiceError):
    """Presented code does not match the class's active session."""

    kind = "invalid_code"

    def __init__(self, message: str = "Attendance code is invalid or does not belong to this class") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class DuplicateSubmission(ServiceError):
    kind = "duplicate_submission"

    def __init__(self, message: str = "Attendance already recorded for this student today") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class StorageError(ServiceError):
    kind = "storage_error"

    def __init__(self, message: str = "Storage failure") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ConsistencyWarning(ServiceError):
    """The attendance event was stored but its tally could not be updated."""

    kind = "consistency_warning"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
