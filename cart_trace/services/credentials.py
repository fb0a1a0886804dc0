"""Phone-based credential resolution.

A phone number can stand for a client login (``{phone}@client.internal``) or a
business-owner login (``{phone}@owner.internal``). Client is always tried
first.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from cart_trace.core.errors import InvalidCredentials, NotFound, ServiceError, ValidationError
from cart_trace.core.validators import validate_phone
from cart_trace.models.identity import AccountType, Identity
from cart_trace.models.profile import Profile
from cart_trace.services.identity import AuthSession, IdentityAdmin, login_email

logger = logging.getLogger(__name__)

LOGIN_ORDER = (AccountType.CLIENT, AccountType.OWNER)

INVALID_LOGIN_MESSAGE = "Invalid phone number or password/PIN"
NO_ACCOUNT_MESSAGE = "No account found for this phone number"


async def resolve_login(admin: IdentityAdmin, phone_number: str, secret: str) -> AuthSession:
    """Sign in with a phone number and password/PIN.

    Both failure reasons are replaced with one generic message so callers
    cannot tell whether an account exists for the phone.
    """
    validate_phone(phone_number)
    if not secret:
        raise ValidationError(
            "Password/PIN is required", details={"password": "Password/PIN is required"}
        )

    for account_type in LOGIN_ORDER:
        try:
            return await admin.sign_in_with_password(
                login_email(phone_number, account_type), secret
            )
        except ServiceError:
            continue

    raise InvalidCredentials(INVALID_LOGIN_MESSAGE)


async def find_identity_by_phone(admin: IdentityAdmin, phone_number: str) -> Identity | None:
    """Locate the identity behind a phone number.

    The profile holding the phone wins; otherwise the synthesized client and
    owner logins are checked, in that order.
    """
    identity = await _identity_via_profile(admin, phone_number)
    if identity is not None:
        logger.info("Resolved identity %s via profile", identity.id)
        return identity

    for account_type in LOGIN_ORDER:
        identity = await admin.find_user_by_email(login_email(phone_number, account_type))
        if identity is not None:
            logger.info("Resolved identity %s via %s login", identity.id, account_type)
            return identity

    logger.info("No identity found for phone %s", phone_number)
    return None


async def resolve_login_email(admin: IdentityAdmin, phone_number: str) -> str:
    validate_phone(phone_number)
    identity = await find_identity_by_phone(admin, phone_number)
    if identity is None:
        raise NotFound(NO_ACCOUNT_MESSAGE)
    return identity.email


async def _identity_via_profile(admin: IdentityAdmin, phone_number: str) -> Identity | None:
    session = admin.session
    try:
        result = await session.execute(
            select(Profile.user_id).where(Profile.phone_number == phone_number).limit(2)
        )
        user_ids = result.scalars().all()
    except SQLAlchemyError:
        logger.exception("Profile lookup failed for phone %s", phone_number)
        await session.rollback()
        return None

    if len(user_ids) != 1:
        if user_ids:
            logger.warning("Phone %s is shared by several profiles", phone_number)
        return None
    return await admin.get_user_by_id(user_ids[0])
