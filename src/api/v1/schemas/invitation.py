"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.invitation import InvitationView


class CreateInvitationRequest(BaseModel):
    """Schema for creating an account invitation.

    Email and role are validated by the service so that malformed input is
    reported with the same error shape as every other invitation failure.
    """

    email: str = Field(..., min_length=1, max_length=255)
    role: str = Field("member", min_length=1, max_length=20)


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "account_id": "456e4567-e89b-12d3-a456-426614174000",
                "email": "user@example.com",
                "role": "member",
                "status": "pending",
                "invited_by_user_id": "789e4567-e89b-12d3-a456-426614174000",
                "sent_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-15T10:00:00",
            }
        },
    )

    id: UUID
    account_id: UUID
    email: str
    role: str
    status: str
    invited_by_user_id: UUID
    sent_at: datetime
    expires_at: datetime
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    revoked_at: datetime | None = None

    @classmethod
    def from_view(cls, view: InvitationView) -> "InvitationResponse":
        """Build the response from an invitation and its resolved status."""
        invitation = view.invitation
        return cls(
            id=invitation.id,
            account_id=invitation.account_id,
            email=invitation.email,
            role=invitation.role.value,
            status=view.status.value,
            invited_by_user_id=invitation.invited_by_user_id,
            sent_at=invitation.sent_at,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
            declined_at=invitation.declined_at,
            revoked_at=invitation.revoked_at,
        )


class InvitationDetailResponse(BaseModel):
    """Schema for a single invitation response."""

    data: InvitationResponse
    created: bool = Field(
        True,
        description="False when an equivalent pending invitation already existed",
    )


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class AcceptInvitationResponse(BaseModel):
    """Schema for accepting an invitation response."""

    account_id: UUID
    account_name: str
    account_short_name: str
    role: str
    newly_granted: bool
    message: str = "Invitation accepted successfully"
