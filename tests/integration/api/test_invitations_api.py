"""Integration tests for Invitations API."""

from collections.abc import Callable
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from domain.results import Unavailable
from domain.services.invitation_service import InvitationService
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import AccountAccessModel
from tests.conftest import T0, FixedClock, Seed

HeadersFor = Callable[[TokenUser], dict[str, str]]


def _account_url(seed: Seed) -> str:
    return f"/api/v1/accounts/{seed.account_id}/invitations"


async def _create(
    client: AsyncClient,
    seed: Seed,
    headers_for: HeadersFor,
    email: str = "invitee@example.com",
    role: str = "member",
    as_user: TokenUser | None = None,
) -> dict:
    response = await client.post(
        _account_url(seed),
        json={"email": email, "role": role},
        headers=headers_for(as_user or seed.owner),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_owner_creates_invitation(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": " New.Person@Example.com", "role": "buyer"},
            headers=headers_for(seed.owner),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["created"] is True
        data = body["data"]
        assert data["email"] == "new.person@example.com"
        assert data["role"] == "buyer"
        assert data["status"] == "pending"
        assert data["account_id"] == str(seed.account_id)
        assert data["invited_by_user_id"] == str(seed.owner.id)

    @pytest.mark.asyncio
    async def test_repeat_create_returns_existing_with_200(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        first = await _create(authenticated_client, seed, headers_for)

        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": "invitee@example.com", "role": "member"},
            headers=headers_for(seed.admin),
        )

        assert response.status_code == 200
        assert response.json()["created"] is False
        assert response.json()["data"]["id"] == first["id"]

    @pytest.mark.asyncio
    async def test_admin_cannot_invite_owner(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": "boss@example.com", "role": "owner"},
            headers=headers_for(seed.admin),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "ROLE_ASSIGNMENT_FORBIDDEN"

    @pytest.mark.asyncio
    async def test_owner_can_invite_owner(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        data = await _create(authenticated_client, seed, headers_for, role="owner")

        assert data["role"] == "owner"

    @pytest.mark.asyncio
    async def test_viewer_cannot_invite(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": "friend@example.com", "role": "viewer"},
            headers=headers_for(seed.viewer),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"

    @pytest.mark.asyncio
    async def test_outsider_cannot_invite(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": "friend@example.com", "role": "viewer"},
            headers=headers_for(seed.invitee),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("payload", "field"),
        [
            ({"email": "not-an-email", "role": "member"}, "email"),
            ({"email": "ok@example.com", "role": "superuser"}, "role"),
        ],
    )
    async def test_invalid_input_is_rejected(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        payload: dict,
        field: str,
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed), json=payload, headers=headers_for(seed.owner)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "INVALID_INVITATION"
        assert body["details"]["field"] == field

    @pytest.mark.asyncio
    async def test_existing_member_conflicts(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed),
            json={"email": "viewer@acme.test", "role": "member"},
            headers=headers_for(seed.owner),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_A_MEMBER"

    @pytest.mark.asyncio
    async def test_requires_authentication(
        self, authenticated_client: AsyncClient, seed: Seed
    ) -> None:
        response = await authenticated_client.post(
            _account_url(seed), json={"email": "a@example.com", "role": "member"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"


class TestListInvitations:
    @pytest.mark.asyncio
    async def test_lists_newest_first_with_status(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        clock: FixedClock,
    ) -> None:
        older = await _create(authenticated_client, seed, headers_for, email="older@example.com")
        clock.advance(hours=1)
        newer = await _create(authenticated_client, seed, headers_for, email="newer@example.com")
        await authenticated_client.post(
            f"{_account_url(seed)}/{older['id']}/revoke", headers=headers_for(seed.owner)
        )

        response = await authenticated_client.get(_account_url(seed), headers=headers_for(seed.admin))

        assert response.status_code == 200
        body = response.json()
        assert body["meta"] == {"total": 2}
        assert [(row["id"], row["status"]) for row in body["data"]] == [
            (newer["id"], "pending"),
            (older["id"], "revoked"),
        ]

    @pytest.mark.asyncio
    async def test_viewer_cannot_list(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.get(_account_url(seed), headers=headers_for(seed.viewer))

        assert response.status_code == 403


class TestRevokeInvitation:
    @pytest.mark.asyncio
    async def test_revoke_pending_invitation(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)

        response = await authenticated_client.post(
            f"{_account_url(seed)}/{created['id']}/revoke", headers=headers_for(seed.admin)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "revoked"
        assert data["revoked_at"] == T0.isoformat()

    @pytest.mark.asyncio
    async def test_revoke_twice_is_not_pending(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)
        url = f"{_account_url(seed)}/{created['id']}/revoke"
        await authenticated_client.post(url, headers=headers_for(seed.owner))

        response = await authenticated_client.post(url, headers=headers_for(seed.owner))

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "INVITATION_NOT_PENDING"
        assert body["details"]["status"] == "revoked"

    @pytest.mark.asyncio
    async def test_revoke_through_other_account_is_forbidden(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        session_factory,
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)
        async with session_factory() as session:
            session.add(
                AccountAccessModel(
                    account_id=seed.other_account_id,
                    user_id=seed.owner.id,
                    role="owner",
                    created_at=T0,
                )
            )
            await session.commit()

        response = await authenticated_client.post(
            f"/api/v1/accounts/{seed.other_account_id}/invitations/{created['id']}/revoke",
            headers=headers_for(seed.owner),
        )

        assert response.status_code == 403
        assert response.json()["details"]["invitation_id"] == created["id"]

    @pytest.mark.asyncio
    async def test_revoke_unknown_invitation(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            f"{_account_url(seed)}/{uuid4()}/revoke", headers=headers_for(seed.owner)
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "INVITATION_NOT_FOUND"


class TestAcceptInvitation:
    @pytest.mark.asyncio
    async def test_accept_joins_account(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        service: InvitationService,
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for, role="admin")

        response = await authenticated_client.post(
            f"/api/v1/invitations/{created['id']}/accept", headers=headers_for(seed.invitee)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["account_id"] == str(seed.account_id)
        assert body["account_name"] == "Acme Supplies"
        assert body["account_short_name"] == "acme"
        assert body["role"] == "admin"
        assert body["newly_granted"] is True
        assert await service.get_member_role(seed.account_id, seed.invitee.id) is not None

    @pytest.mark.asyncio
    async def test_accept_twice_reports_already_accepted(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)
        url = f"/api/v1/invitations/{created['id']}/accept"
        await authenticated_client.post(url, headers=headers_for(seed.invitee))

        response = await authenticated_client.post(url, headers=headers_for(seed.invitee))

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVITATION_ALREADY_ACCEPTED"

    @pytest.mark.asyncio
    async def test_accept_expired_invitation(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        clock: FixedClock,
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)
        clock.advance(days=14, minutes=1)

        response = await authenticated_client.post(
            f"/api/v1/invitations/{created['id']}/accept", headers=headers_for(seed.invitee)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVITATION_EXPIRED"

    @pytest.mark.asyncio
    async def test_accept_unknown_invitation(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            f"/api/v1/invitations/{uuid4()}/accept", headers=headers_for(seed.invitee)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_accept_by_identity_without_user_record(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)
        stranger = TokenUser(id=uuid4(), email="invitee@example.com", display_name=None)

        response = await authenticated_client.post(
            f"/api/v1/invitations/{created['id']}/accept", headers=headers_for(stranger)
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "USER_NOT_FOUND"
        assert body["details"]["user_id"] == str(stranger.id)

    @pytest.mark.asyncio
    async def test_malformed_id_is_validation_error(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        response = await authenticated_client.post(
            "/api/v1/invitations/not-a-uuid/accept", headers=headers_for(seed.invitee)
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestDeclineInvitation:
    @pytest.mark.asyncio
    async def test_decline_then_accept_fails(
        self, authenticated_client: AsyncClient, seed: Seed, headers_for: HeadersFor
    ) -> None:
        created = await _create(authenticated_client, seed, headers_for)

        declined = await authenticated_client.post(
            f"/api/v1/invitations/{created['id']}/decline", headers=headers_for(seed.invitee)
        )
        accepted = await authenticated_client.post(
            f"/api/v1/invitations/{created['id']}/accept", headers=headers_for(seed.invitee)
        )

        assert declined.status_code == 200
        assert declined.json()["data"]["status"] == "declined"
        assert accepted.status_code == 400
        assert accepted.json()["details"]["status"] == "declined"


class TestStoreUnavailable:
    @pytest.mark.asyncio
    async def test_unavailable_store_returns_503(
        self,
        authenticated_client: AsyncClient,
        seed: Seed,
        headers_for: HeadersFor,
        service: InvitationService,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def unavailable(invitation_id: UUID, accepting_user_id: UUID, timeout=None):
            return Unavailable(reason="accept could not reach the invitation store")

        monkeypatch.setattr(service, "accept_invitation", unavailable)

        response = await authenticated_client.post(
            f"/api/v1/invitations/{uuid4()}/accept",
            headers=headers_for(seed.invitee),
        )

        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"
