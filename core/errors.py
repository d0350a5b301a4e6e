from typing import Optional


class DomainError(ValueError):
    """Базовая ошибка предметной области"""


class NotFoundError(DomainError):
    pass


class ConflictError(DomainError):
    pass


class InsufficientBalanceError(DomainError):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient IXP balance. Required: {required}, available: {available}"
        )


class RemoteFailureError(DomainError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ValidationFailureError(DomainError):
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class AuthenticationError(DomainError):
    pass


class PermissionDeniedError(DomainError):
    pass
