"""Tenant and client account provisioning.

Both flows create rows in the identity provider and in the tenant store one
after the other. Steps run strictly in order (identity, profile, role) and a
failure undoes the completed steps in reverse.

Step results are plain ids: a failed commit rolls the session back and
expires every loaded row, so compensations must not touch ORM attributes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cart_trace.core.errors import (
    ProfileCreationFailed,
    RoleAssignmentFailed,
    TenantCreationFailed,
    Unauthenticated,
)
from cart_trace.models.identity import AccountType
from cart_trace.models.profile import Profile
from cart_trace.models.tenant import Tenant
from cart_trace.models.user_role import AppRole, UserRole
from cart_trace.services.identity import AuthSession, IdentityAdmin, login_email
from cart_trace.services.saga import Saga

logger = logging.getLogger(__name__)


@dataclass
class TenantSetupResult:
    tenant_id: uuid.UUID
    tenant_created: bool
    profile_created: bool


@dataclass
class ClientAccount:
    user_id: uuid.UUID
    email: str


@dataclass
class OwnerSignUp:
    session: AuthSession
    tenant_id: uuid.UUID


# ── Tenant provisioning ──────────────────────────────────────

async def setup_tenant(
    admin: IdentityAdmin,
    token: str | None,
    business_name: str,
    full_name: str,
    phone_number: str,
) -> TenantSetupResult:
    """Turn a freshly signed-up identity into a business-owner account.

    Safe to re-enter: an existing tenant for the phone is reused and an
    existing profile for the caller short-circuits the rest.
    """
    if not token:
        raise Unauthenticated("No authorization header")
    identity = await admin.get_user(token)
    user_id = identity.id
    session = admin.session

    logger.info("Setting up tenant for user %s", user_id)

    async with Saga("setup-tenant") as saga:
        tenant_id, tenant_created = await saga.step(
            lambda: _get_or_create_tenant(session, business_name, phone_number),
            lambda found: _delete_tenant(session, found[0]) if found[1] else _noop(),
            label="tenant",
        )

        if await _find_profile(session, user_id) is not None:
            logger.info("User %s already has a profile, nothing to do", user_id)
            return TenantSetupResult(tenant_id, tenant_created, profile_created=False)

        profile_id = await saga.step(
            lambda: _insert_profile(session, user_id, tenant_id, full_name, phone_number),
            lambda pid: _delete_profile(session, pid) if pid is not None else _noop(),
            label="profile",
        )
        if profile_id is None:
            # Lost a race with a concurrent setup for the same user
            return TenantSetupResult(tenant_id, tenant_created, profile_created=False)

        await saga.step(lambda: _insert_role(session, user_id, AppRole.ADMIN), label="role")
        logger.info("Assigned admin role to user %s", user_id)

    return TenantSetupResult(tenant_id, tenant_created, profile_created=True)


async def sign_up_owner(
    admin: IdentityAdmin,
    business_name: str,
    full_name: str,
    phone_number: str,
    password: str,
) -> OwnerSignUp:
    """Create the owner login for a business and provision its tenant."""
    metadata = {
        "business_name": business_name,
        "full_name": full_name,
        "phone_number": phone_number,
    }
    async with Saga("sign-up") as saga:
        auth = await saga.step(
            lambda: admin.sign_up(login_email(phone_number, AccountType.OWNER), password, metadata),
            lambda created: admin.delete_user(created.user_id),
            label="identity",
        )
        result = await setup_tenant(
            admin, auth.access_token, business_name, full_name, phone_number
        )
    return OwnerSignUp(session=auth, tenant_id=result.tenant_id)


# ── Client accounts ──────────────────────────────────────────

async def create_client_user(
    admin: IdentityAdmin,
    email: str,
    password: str,
    phone_number: str,
    tenant_id: uuid.UUID,
    metadata: dict[str, Any] | None = None,
) -> ClientAccount:
    """Create a client login, its profile and its ``client`` role.

    Inputs are expected to be validated already. If the profile insert fails
    the identity is deleted; if the role insert fails the profile and then the
    identity are deleted.
    """
    session = admin.session

    async with Saga("create-client-user") as saga:
        account = await saga.step(
            lambda: _create_identity(admin, email, password, metadata),
            lambda created: admin.delete_user(created.user_id),
            label="identity",
        )
        # Client accounts carry the phone number in place of a real name
        await saga.step(
            lambda: _insert_profile(
                session, account.user_id, tenant_id, phone_number, phone_number, reuse=False
            ),
            lambda pid: _delete_profile(session, pid),
            label="profile",
        )
        await saga.step(
            lambda: _insert_role(session, account.user_id, AppRole.CLIENT), label="role"
        )

    logger.info("Created client user %s for tenant %s", account.user_id, tenant_id)
    return account


async def _create_identity(
    admin: IdentityAdmin, email: str, password: str, metadata: dict[str, Any] | None
) -> ClientAccount:
    identity = await admin.create_user(email, password, metadata)
    return ClientAccount(user_id=identity.id, email=identity.email)


# ── Store helpers ────────────────────────────────────────────

def _store_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


async def _noop() -> None:
    return None


async def _find_tenant_id(session: AsyncSession, phone_number: str) -> uuid.UUID | None:
    result = await session.execute(select(Tenant.id).where(Tenant.phone_number == phone_number))
    return result.scalar_one_or_none()


async def _get_or_create_tenant(
    session: AsyncSession, business_name: str, phone_number: str
) -> tuple[uuid.UUID, bool]:
    existing = await _find_tenant_id(session, phone_number)
    if existing is not None:
        logger.info("Using existing tenant %s", existing)
        return existing, False

    tenant = Tenant(business_name=business_name, phone_number=phone_number)
    tenant_id = tenant.id
    session.add(tenant)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        # Another signup for the same phone got there first
        existing = await _find_tenant_id(session, phone_number)
        if existing is None:
            raise TenantCreationFailed(_store_message(exc)) from exc
        logger.info("Tenant for %s created concurrently, reusing %s", phone_number, existing)
        return existing, False
    except SQLAlchemyError as exc:
        await session.rollback()
        raise TenantCreationFailed(_store_message(exc)) from exc

    logger.info("Created new tenant %s", tenant_id)
    return tenant_id, True


async def _delete_tenant(session: AsyncSession, tenant_id: uuid.UUID) -> None:
    tenant = await session.get(Tenant, tenant_id)
    if tenant is not None:
        await session.delete(tenant)
        await session.commit()


async def _find_profile(session: AsyncSession, user_id: uuid.UUID) -> uuid.UUID | None:
    result = await session.execute(select(Profile.id).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def _insert_profile(
    session: AsyncSession,
    user_id: uuid.UUID,
    tenant_id: uuid.UUID,
    full_name: str,
    phone_number: str,
    reuse: bool = True,
) -> uuid.UUID | None:
    """Insert a profile; with ``reuse`` a duplicate user_id yields None."""
    profile = Profile(
        user_id=user_id,
        tenant_id=tenant_id,
        full_name=full_name,
        phone_number=phone_number,
    )
    profile_id = profile.id
    session.add(profile)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if reuse and await _find_profile(session, user_id) is not None:
            return None
        raise ProfileCreationFailed(_store_message(exc)) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise ProfileCreationFailed(_store_message(exc)) from exc

    logger.info("Created profile for user %s", user_id)
    return profile_id


async def _delete_profile(session: AsyncSession, profile_id: uuid.UUID) -> None:
    profile = await session.get(Profile, profile_id)
    if profile is not None:
        await session.delete(profile)
        await session.commit()


async def _insert_role(session: AsyncSession, user_id: uuid.UUID, role: AppRole) -> UserRole:
    assignment = UserRole(user_id=user_id, role=role)
    session.add(assignment)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise RoleAssignmentFailed(_store_message(exc)) from exc
    return assignment
