"""Translation of driver-level failures into StoreUnavailableError."""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy import exc as sa_exc

from core.exceptions import StoreUnavailableError

P = ParamSpec("P")
R = TypeVar("R")

# Failures that say nothing about the data, only that the store was unreachable
TRANSIENT_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


def translate_db_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise transient SQLAlchemy errors as StoreUnavailableError."""

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except TRANSIENT_ERRORS as exc:
            raise StoreUnavailableError(type(exc).__name__) from exc

    return wrapper
