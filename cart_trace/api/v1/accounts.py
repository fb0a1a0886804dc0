"""Phone-number lookups: login e-mail resolution and PIN reset."""

from fastapi import APIRouter
from pydantic import BaseModel

from cart_trace.api.deps import Admin
from cart_trace.core.validators import PhoneNumber
from cart_trace.services.credentials import resolve_login_email
from cart_trace.services.password_reset import reset_password

router = APIRouter(tags=["accounts"])


class PhoneNumberRequest(BaseModel):
    phone_number: PhoneNumber


class LoginEmailResponse(BaseModel):
    email: str


class PinResponse(BaseModel):
    pin: str


@router.post("/resolve-login-email", response_model=LoginEmailResponse)
async def resolve_login_email_route(body: PhoneNumberRequest, admin: Admin) -> LoginEmailResponse:
    """Return the login e-mail behind a phone number (profile first, then internal logins)."""
    email = await resolve_login_email(admin, body.phone_number)
    return LoginEmailResponse(email=email)


@router.post("/reset-password", response_model=PinResponse)
async def reset_password_route(body: PhoneNumberRequest, admin: Admin) -> PinResponse:
    """Generate a fresh 6-digit PIN for the account behind a phone number."""
    pin = await reset_password(admin, body.phone_number)
    return PinResponse(pin=pin)
