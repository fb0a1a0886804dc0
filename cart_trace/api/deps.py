"""FastAPI dependencies for sessions and caller identity."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cart_trace.core.database import get_session
from cart_trace.core.errors import Unauthenticated
from cart_trace.models.identity import Identity
from cart_trace.services.identity import IdentityAdmin

# Missing headers are reported through our own error payload, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_admin(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdentityAdmin:
    return IdentityAdmin(session)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    return credentials.credentials if credentials else None


async def get_current_identity(
    token: Annotated[str | None, Depends(get_bearer_token)],
    admin: Annotated[IdentityAdmin, Depends(get_identity_admin)],
) -> Identity:
    """Resolve the bearer token to an active identity."""
    if not token:
        raise Unauthenticated("No authorization header")
    return await admin.get_user(token)


# Typed shorthand for use in route signatures
Admin = Annotated[IdentityAdmin, Depends(get_identity_admin)]
BearerToken = Annotated[str | None, Depends(get_bearer_token)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Session = Annotated[AsyncSession, Depends(get_session)]
