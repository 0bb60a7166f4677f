from typing import Awaitable, TypeVar
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from dicewizard.auth import decode_token
from dicewizard.config import Settings
from dicewizard.database import run_with_deadline
from dicewizard.errors import AuthenticationFailed

T = TypeVar("T")

bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request):
    async with request.app.state.db.session() as session:
        yield session


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    config: Settings = Depends(get_settings),
) -> int:
    if credentials is None:
        raise AuthenticationFailed("missing bearer token")
    user_id = decode_token(credentials.credentials, config)
    if not user_id:
        raise AuthenticationFailed("invalid token")
    return user_id


class Deadline:
    """Runs a core call under the configured query timeout.

    A timed-out call leaves its session mid-transaction; closing the
    request session in ``get_db`` rolls it back.
    """

    def __init__(self, config: Settings = Depends(get_settings)):
        self.seconds = config.QUERY_TIMEOUT_SECONDS

    async def __call__(self, call: Awaitable[T]) -> T:
        return await run_with_deadline(call, self.seconds)
