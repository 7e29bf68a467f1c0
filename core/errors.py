# Domain Errors for the Gig Marketplace Core
# Every failure a caller can observe is an HTTPException with a stable message,
# so services can raise them directly and FastAPI renders them unchanged.

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for typed, user-facing failures."""

    kind = "DomainError"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, status_code: int = None, headers: dict = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail, headers=headers)

    def __str__(self):
        return f"{self.kind}: {self.detail}"


class UnauthenticatedError(DomainError):
    kind = "Unauthenticated"
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Invalid authentication credentials"):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(DomainError):
    kind = "Forbidden"
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "Forbidden."):
        super().__init__(detail)


class NotFoundError(DomainError):
    kind = "NotFound"
    status_code_default = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    kind = "Conflict"
    status_code_default = status.HTTP_409_CONFLICT


class InvalidStateError(DomainError):
    kind = "InvalidState"
    status_code_default = status.HTTP_409_CONFLICT


class AlreadyPendingError(InvalidStateError):
    kind = "AlreadyPending"


class InvalidArgumentError(DomainError):
    kind = "InvalidArgument"
    status_code_default = status.HTTP_400_BAD_REQUEST


class InsufficientBalanceError(DomainError):
    kind = "InsufficientBalance"
    status_code_default = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, detail: str = "Insufficient stars balance."):
        super().__init__(detail)


class InvalidCredentialError(DomainError):
    kind = "InvalidCredential"
    status_code_default = status.HTTP_401_UNAUTHORIZED
