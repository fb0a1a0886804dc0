"""PIN reset by phone number.

The new PIN is handed back to the caller in the response; there is no SMS or
other out-of-band delivery.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from cart_trace.core.errors import NotFound, PasswordResetFailed, ServiceError
from cart_trace.core.security import generate_pin
from cart_trace.core.validators import validate_phone
from cart_trace.services.credentials import find_identity_by_phone
from cart_trace.services.identity import IdentityAdmin

logger = logging.getLogger(__name__)

RESET_NO_ACCOUNT_MESSAGE = "No account found with this phone number"


async def reset_password(admin: IdentityAdmin, phone_number: str) -> str:
    """Overwrite the secret of the identity behind ``phone_number``; return the new PIN."""
    validate_phone(phone_number)

    identity = await find_identity_by_phone(admin, phone_number)
    if identity is None:
        raise NotFound(RESET_NO_ACCOUNT_MESSAGE)

    user_id = identity.id
    pin = generate_pin()
    try:
        await admin.update_password(user_id, pin)
    except (ServiceError, SQLAlchemyError) as exc:
        logger.error("Error updating password for %s: %s", user_id, exc)
        await admin.session.rollback()
        raise PasswordResetFailed("Failed to reset password") from exc

    logger.info("Reset PIN for identity %s", user_id)
    return pin
