"""JWT authentication provider implementation.

Tokens are issued by the identity service. Two signing modes are accepted:

- asymmetric (ES256/RS256), verified against the identity provider's JWKS
  endpoint configured in ``JWT_JWKS_URL``
- symmetric (HS256 by default), verified with ``JWT_SECRET_KEY``; this is
  what local development and the test suite use

Expected payload:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "name": "Jane Doe",
        "exp": 1234567890
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

import httpx
import structlog
from jose import JWTError, jwt

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

ASYMMETRIC_ALGORITHMS = frozenset({"ES256", "RS256"})

# Module-level JWKS cache (fetched once, reused across requests)
_jwks_cache: dict[str, Any] | None = None


async def _get_jwks_keys(jwks_url: str) -> dict[str, Any]:
    """Fetch and cache JWKS keys keyed by ``kid``."""
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache

    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            jwks_data = response.json()
    except httpx.HTTPError:
        logger.exception("jwks_fetch_failed", jwks_url=jwks_url)
        return {}

    _jwks_cache = {
        key_data["kid"]: key_data
        for key_data in jwks_data.get("keys", [])
        if key_data.get("kid")
    }
    logger.info("jwks_fetched", key_count=len(_jwks_cache))
    return _jwks_cache


def reset_jwks_cache() -> None:
    """Forget cached JWKS keys so the next lookup refetches them."""
    global _jwks_cache
    _jwks_cache = None


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        jwks_url: str = settings.jwt_jwks_url,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._jwks_url = jwks_url

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a JWT token and extract user info.

        The signing algorithm is read from the token header: asymmetric
        tokens are checked against the JWKS key named by ``kid``, anything
        else against the shared secret.

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg", self._algorithm)

            if alg in ASYMMETRIC_ALGORITHMS:
                payload = await self._validate_with_jwks(token, header, alg)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None

        try:
            parsed_id = UUID(user_id)
        except ValueError:
            return None

        user_metadata = payload.get("user_metadata") or {}
        display_name = payload.get("name") or user_metadata.get("display_name")

        return TokenUser(id=parsed_id, email=email, display_name=display_name)

    async def _validate_with_jwks(
        self, token: str, header: dict, alg: str
    ) -> Optional[dict]:
        """Validate an asymmetrically signed JWT using JWKS public keys."""
        kid = header.get("kid")
        if not kid:
            return None

        key_data = (await _get_jwks_keys(self._jwks_url)).get(kid)
        if not key_data:
            # Unknown kid: the provider may have rotated keys
            reset_jwks_cache()
            key_data = (await _get_jwks_keys(self._jwks_url)).get(kid)
            if not key_data:
                logger.warning("jwks_key_not_found", kid=kid)
                return None

        return jwt.decode(
            token,
            key_data,
            algorithms=[alg],
            options={"verify_aud": False},
        )

    def create_token(self, user: TokenUser) -> str:
        """
        Create a JWT token for a user, signed with the shared secret.

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.display_name,
            "exp": expire,
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
