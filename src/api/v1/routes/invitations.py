"""Invitation API routes."""

from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_invitation_service
from api.v1.schemas.invitation import (
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationDetailResponse,
    InvitationListResponse,
    InvitationResponse,
)
from core.exceptions import (
    AccountNotFoundError,
    AlreadyAMemberError,
    InsufficientPermissionsError,
    InvalidInvitationError,
    InvitationAlreadyAcceptedError,
    InvitationExpiredError,
    InvitationForbiddenError,
    InvitationNotFoundError,
    InvitationNotPendingError,
    NotAMemberError,
    RoleAssignmentForbiddenError,
    ServiceUnavailableError,
    UserNotFoundError,
)
from core.rate_limit import limiter
from domain.entities.account import (
    INVITATION_MANAGER_ROLES,
    can_assign_role,
    can_manage_invitations,
)
from domain.entities.invitation import InvitationStatus, InvitationView, Role, parse_role
from domain.results import (
    AlreadyMember,
    Created,
    Forbidden,
    NotFound,
    NotPending,
    Unavailable,
    ValidationFailed,
)
from domain.services.invitation_service import InvitationService

# Account-scoped invitation routes (managed by owners and admins)
account_invitations_router = APIRouter(
    prefix="/accounts/{account_id}/invitations",
    tags=["invitations"],
)

# Invitee routes (accept, decline)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


async def _require_manager(
    service: InvitationService, account_id: UUID, user_id: UUID
) -> Role:
    """Return the caller's role, raising unless they are an owner or admin."""
    role = await service.get_member_role(account_id, user_id)
    if role is None:
        raise NotAMemberError(str(account_id))
    if not can_manage_invitations(role):
        raise InsufficientPermissionsError(
            required_roles=sorted(r.value for r in INVITATION_MANAGER_ROLES)
        )
    return role


def _raise_for_failure(result: object) -> NoReturn:
    """Translate a failure result into the matching API exception."""
    if isinstance(result, ValidationFailed):
        raise InvalidInvitationError(result.field, result.message)
    if isinstance(result, AlreadyMember):
        raise AlreadyAMemberError(result.email)
    if isinstance(result, NotFound):
        if result.resource == "account":
            raise AccountNotFoundError(str(result.resource_id))
        if result.resource == "user":
            raise UserNotFoundError(str(result.resource_id))
        raise InvitationNotFoundError(str(result.resource_id))
    if isinstance(result, NotPending):
        if result.status == InvitationStatus.EXPIRED:
            raise InvitationExpiredError()
        if result.status == InvitationStatus.ACCEPTED:
            raise InvitationAlreadyAcceptedError()
        raise InvitationNotPendingError(result.status.value, result.access_granted)
    if isinstance(result, Forbidden):
        raise InvitationForbiddenError("")
    if isinstance(result, Unavailable):
        raise ServiceUnavailableError(result.reason)
    raise TypeError(f"Unexpected invitation result: {result!r}")


@account_invitations_router.post(
    "",
    response_model=InvitationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create account invitation",
    responses={
        200: {"description": "A pending invitation for this email already exists"},
        201: {"description": "Invitation created"},
        400: {"description": "Invalid email or role"},
        404: {"description": "Account or inviting user not found"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        409: {"description": "Already a member"},
        503: {"description": "Invitation store unavailable, retry"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    response: Response,
    account_id: UUID,
    body: CreateInvitationRequest,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Invite an email address to the account. Requires owner or admin role."""
    current_role = await _require_manager(service, account_id, user.id)

    target_role = parse_role(body.role)
    if target_role is not None and not can_assign_role(current_role, target_role):
        raise RoleAssignmentForbiddenError(target_role.value)

    result = await service.create_invitation(
        account_id=account_id,
        email=body.email,
        role=body.role,
        invited_by_user_id=user.id,
    )
    if not result.ok:
        _raise_for_failure(result)

    if not isinstance(result, Created):
        response.status_code = status.HTTP_200_OK
    view = InvitationView(invitation=result.invitation, status=InvitationStatus.PENDING)
    return InvitationDetailResponse(
        data=InvitationResponse.from_view(view),
        created=isinstance(result, Created),
    )


@account_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List account invitations",
    responses={
        200: {"description": "All invitations for the account, newest first"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        503: {"description": "Invitation store unavailable, retry"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_account_invitations(
    request: Request,
    account_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List every invitation of the account with its current status."""
    await _require_manager(service, account_id, user.id)

    result = await service.list_invitations(account_id)
    if isinstance(result, Unavailable):
        _raise_for_failure(result)

    data = [InvitationResponse.from_view(view) for view in result]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@account_invitations_router.post(
    "/{invitation_id}/revoke",
    response_model=InvitationDetailResponse,
    summary="Revoke invitation",
    responses={
        200: {"description": "Invitation revoked"},
        400: {"description": "Invitation is no longer pending"},
        403: {"description": "Insufficient permissions or foreign invitation"},
        404: {"description": "Invitation not found"},
        503: {"description": "Invitation store unavailable, retry"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_invitation(
    request: Request,
    account_id: UUID,
    invitation_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Revoke a pending invitation. Requires owner or admin role."""
    await _require_manager(service, account_id, user.id)

    result = await service.revoke_invitation(
        invitation_id=invitation_id,
        requesting_account_id=account_id,
    )
    if isinstance(result, Forbidden):
        raise InvitationForbiddenError(str(invitation_id))
    if not result.ok:
        _raise_for_failure(result)

    view = InvitationView(invitation=result.invitation, status=InvitationStatus.REVOKED)
    return InvitationDetailResponse(data=InvitationResponse.from_view(view), created=False)


# --- Invitee routes ---


@invitations_router.post(
    "/{invitation_id}/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, access granted"},
        400: {"description": "Invitation expired, declined, revoked or already accepted"},
        404: {"description": "Invitation, account or user not found"},
        503: {"description": "Invitation store unavailable, retry"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    invitation_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """Accept an invitation and join the account."""
    result = await service.accept_invitation(
        invitation_id=invitation_id,
        accepting_user_id=user.id,
    )
    if not result.ok:
        _raise_for_failure(result)

    return AcceptInvitationResponse(
        account_id=result.account.id,
        account_name=result.account.name,
        account_short_name=result.account.short_name,
        role=result.role.value,
        newly_granted=result.newly_granted,
    )


@invitations_router.post(
    "/{invitation_id}/decline",
    response_model=InvitationDetailResponse,
    summary="Decline invitation",
    responses={
        200: {"description": "Invitation declined"},
        400: {"description": "Invitation is no longer pending"},
        404: {"description": "Invitation not found"},
        503: {"description": "Invitation store unavailable, retry"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def decline_invitation(
    request: Request,
    invitation_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Decline an invitation."""
    result = await service.decline_invitation(invitation_id)
    if not result.ok:
        _raise_for_failure(result)

    view = InvitationView(invitation=result.invitation, status=InvitationStatus.DECLINED)
    return InvitationDetailResponse(data=InvitationResponse.from_view(view), created=False)
