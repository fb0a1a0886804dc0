"""Identity provider — admin and end-user authentication API.

Identities live in their own table and every call commits on its own, so a
flow that also writes tenant rows spans two commit boundaries and has to
compensate by hand (see ``cart_trace.services.saga``).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cart_trace.core.config import get_settings
from cart_trace.core.errors import (
    IdentityCreationFailed,
    InvalidCredentials,
    NotFound,
    Unauthenticated,
)
from cart_trace.core.security import create_jwt, decode_jwt, hash_password, verify_password
from cart_trace.models.base import utcnow
from cart_trace.models.identity import AccountType, Identity

logger = logging.getLogger(__name__)

settings = get_settings()


# ── Login e-mail convention ───────────────────────────────────

def login_email(phone_number: str, account_type: AccountType) -> str:
    """Synthesized login address, e.g. ``0712345678@client.internal``."""
    if account_type == AccountType.CLIENT:
        return f"{phone_number}@{settings.client_email_domain}"
    return f"{phone_number}@{settings.owner_email_domain}"


def account_type_for_email(email: str) -> AccountType:
    """Clients are recognised by their domain; every other address is an owner."""
    if email.lower().endswith(f"@{settings.client_email_domain}"):
        return AccountType.CLIENT
    return AccountType.OWNER


def _counterpart_email(email: str) -> str | None:
    """The same phone's login under the other role, for synthesized addresses."""
    local, _, domain = email.partition("@")
    if domain == settings.client_email_domain:
        return login_email(local, AccountType.OWNER)
    if domain == settings.owner_email_domain:
        return login_email(local, AccountType.CLIENT)
    return None


@dataclass
class AuthSession:
    access_token: str
    user_id: uuid.UUID
    identity: Identity
    token_type: str = "bearer"


class IdentityAdmin:
    """Privileged identity operations bound to one DB session.

    Creating or updating users here never touches the caller's own session
    token; tokens are only issued by ``sign_in_with_password``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Admin API ────────────────────────────────────────────

    async def create_user(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> Identity:
        email = email.strip().lower()

        counterpart = _counterpart_email(email)
        if counterpart and await self.find_user_by_email(counterpart) is not None:
            raise IdentityCreationFailed(
                "This phone number is already registered under another account type"
            )

        identity = Identity(
            email=email,
            password_hash=hash_password(password),
            account_type=account_type_for_email(email),
            user_metadata=metadata or {},
        )
        self.session.add(identity)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise IdentityCreationFailed(
                "A user with this email address has already been registered"
            ) from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise IdentityCreationFailed(str(exc)) from exc

        logger.info("Created identity %s (%s)", identity.id, identity.account_type)
        return identity

    async def get_user_by_id(self, user_id: uuid.UUID) -> Identity | None:
        return await self.session.get(Identity, user_id)

    async def find_user_by_email(self, email: str) -> Identity | None:
        result = await self.session.execute(
            select(Identity).where(Identity.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def update_password(self, user_id: uuid.UUID, password: str) -> Identity:
        identity = await self.get_user_by_id(user_id)
        if identity is None:
            raise NotFound("User not found")

        identity.password_hash = hash_password(password)
        identity.updated_at = utcnow()
        self.session.add(identity)
        await self.session.commit()
        return identity

    async def delete_user(self, user_id: uuid.UUID) -> None:
        identity = await self.get_user_by_id(user_id)
        if identity is None:
            raise NotFound("User not found")

        await self.session.delete(identity)
        await self.session.commit()
        logger.info("Deleted identity %s", user_id)

    # ── End-user API ─────────────────────────────────────────

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession:
        identity = await self.create_user(email, password, metadata)
        return await self._issue_session(identity)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        identity = await self.find_user_by_email(email)
        if (
            identity is None
            or not identity.is_active
            or not verify_password(password, identity.password_hash)
        ):
            raise InvalidCredentials("Invalid login credentials")
        return await self._issue_session(identity)

    async def get_user(self, token: str) -> Identity:
        """Resolve an access token to its identity."""
        try:
            payload = decode_jwt(token)
            user_id = uuid.UUID(payload["sub"])
        except (JWTError, KeyError, ValueError) as exc:
            raise Unauthenticated("Invalid user token") from exc

        identity = await self.get_user_by_id(user_id)
        if identity is None or not identity.is_active:
            raise Unauthenticated("Invalid user token")
        return identity

    async def _issue_session(self, identity: Identity) -> AuthSession:
        identity.last_sign_in_at = utcnow()
        self.session.add(identity)
        await self.session.commit()

        token = create_jwt(
            subject=str(identity.id),
            email=identity.email,
            account_type=identity.account_type,
        )
        return AuthSession(access_token=token, user_id=identity.id, identity=identity)
