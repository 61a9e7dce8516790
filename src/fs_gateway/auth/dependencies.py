"""FastAPI dependency: get_current_member.

Usage in any protected router:
    from src.fs_gateway.auth.dependencies import CurrentMember

    @router.get("/protected")
    async def protected(member: CurrentMember):
        ...
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.fs_common.errors import InvalidCredentialsError
from src.fs_common.participants import ParticipantRef
from src.fs_gateway.auth.jwt_handler import decode_access_token

# tokenUrl points at the external session service (Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class AuthenticatedMember:
    ref: ParticipantRef
    name: str | None = None

    @property
    def id(self) -> str:
        return self.ref.id


async def get_current_member(
    token: str = Depends(oauth2_scheme),
) -> AuthenticatedMember:
    """Validate the Bearer token and return the calling member.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return AuthenticatedMember(ref=ParticipantRef.member(payload["sub"]), name=payload.get("name"))


CurrentMember = Annotated[AuthenticatedMember, Depends(get_current_member)]
