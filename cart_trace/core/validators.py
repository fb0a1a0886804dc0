"""Input formats shared by request schemas and services."""

import re
from typing import Annotated

from pydantic import AfterValidator

from cart_trace.core.errors import ValidationError

# Kenyan local numbers: 10 ASCII digits with a leading zero
PHONE_RE = re.compile(r"^0[0-9]{9}$")
INVALID_PHONE_MESSAGE = "Invalid phone number format"


def is_valid_phone(value: str | None) -> bool:
    return bool(value) and PHONE_RE.fullmatch(value) is not None


def validate_phone(value: str | None, field: str = "phone_number") -> str:
    if not is_valid_phone(value):
        raise ValidationError(INVALID_PHONE_MESSAGE, details={field: INVALID_PHONE_MESSAGE})
    return value


def _check_phone(value: str) -> str:
    if not is_valid_phone(value):
        raise ValueError(INVALID_PHONE_MESSAGE)
    return value


# Request-schema field type
PhoneNumber = Annotated[str, AfterValidator(_check_phone)]
