"""Bearer-token authentication for the invitation routes."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

# Missing credentials reach get_current_user as None
bearer_scheme = HTTPBearer(auto_error=False)

_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Return the process-wide token verifier, built from settings on first use."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    auth_provider: Annotated[JWTAuthProvider, Depends(get_auth_provider)],
) -> TokenUser:
    """Resolve the caller from the Authorization header.

    Invitees and account managers alike must present a token; the routes
    decide what the caller may do with it.

    Raises:
        AuthenticationError: ``UNAUTHORIZED`` without a header,
            ``INVALID_TOKEN`` when the token does not verify.
    """
    if credentials is None:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    caller = await auth_provider.validate_token(credentials.credentials)
    if caller is None:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )
    return caller


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
