"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ROLE_ASSIGNMENT_FORBIDDEN = "ROLE_ASSIGNMENT_FORBIDDEN"

    # Not found errors (404)
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INVITATION = "INVALID_INVITATION"

    # Invitation state errors
    INVITATION_EXPIRED = "INVITATION_EXPIRED"
    INVITATION_ALREADY_ACCEPTED = "INVITATION_ALREADY_ACCEPTED"
    INVITATION_NOT_PENDING = "INVITATION_NOT_PENDING"

    # Conflict errors (409)
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class NotAMemberError(AppException):
    """User has no access to the account."""

    def __init__(self, account_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You do not have access to this account",
            status_code=403,
            details={"account_id": account_id},
        )


class InsufficientPermissionsError(AppException):
    """User does not have sufficient permissions."""

    def __init__(self, required_roles: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message="Only account owners and admins can manage invitations",
            status_code=403,
            details={"required_roles": required_roles},
        )


class RoleAssignmentForbiddenError(AppException):
    """The requesting user may not hand out the requested role."""

    def __init__(self, role: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_ASSIGNMENT_FORBIDDEN,
            message=f"You cannot assign the {role} role",
            status_code=403,
            details={"role": role},
        )


class AccountNotFoundError(AppException):
    """Account not found."""

    def __init__(self, account_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ACCOUNT_NOT_FOUND,
            message=f"Account not found: {account_id}",
            status_code=404,
            details={"account_id": account_id},
        )


class InvitationNotFoundError(AppException):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message="Invitation not found",
            status_code=404,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class UserNotFoundError(AppException):
    """The authenticated identity has no user record."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            status_code=404,
            details={"user_id": user_id},
        )


class InvalidInvitationError(AppException):
    """Invitation input (email or role) is malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_INVITATION,
            message=message,
            status_code=400,
            details={"field": field},
        )


class AlreadyAMemberError(AppException):
    """Invitee already has access to the account."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="User already has access to this account",
            status_code=409,
            details={"email": email},
        )


class InvitationExpiredError(AppException):
    """Invitation has expired."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EXPIRED,
            message="This invitation has expired",
            status_code=400,
            details={"status": "expired"},
        )


class InvitationAlreadyAcceptedError(AppException):
    """Invitation has already been accepted."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_ALREADY_ACCEPTED,
            message="This invitation has already been accepted",
            status_code=400,
            details={"status": "accepted"},
        )


class InvitationNotPendingError(AppException):
    """Invitation was declined or revoked."""

    def __init__(self, status: str, access_granted: bool = False) -> None:
        details: dict[str, Any] = {"status": status}
        if access_granted:
            details["access_granted"] = True
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_PENDING,
            message=f"This invitation has been {status}",
            status_code=400,
            details=details,
        )


class InvitationForbiddenError(AppException):
    """Invitation belongs to a different account."""

    def __init__(self, invitation_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message="Invitation does not belong to this account",
            status_code=403,
            details={"invitation_id": invitation_id},
        )


class ServiceUnavailableError(AppException):
    """The invitation store could not be reached in time; safe to retry."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            message="The service is temporarily unavailable, please retry",
            status_code=503,
            details={"reason": reason} if reason else None,
        )


class StoreUnavailableError(ServiceUnavailableError):
    """Raised by repositories on transport failures (connection loss, pool timeout)."""
