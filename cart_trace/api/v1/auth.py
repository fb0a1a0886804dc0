"""Authentication endpoints — owner sign-up, phone login, current user."""

import uuid

from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from sqlmodel import select

from cart_trace.api.deps import Admin, CurrentIdentity, Session
from cart_trace.core.validators import PhoneNumber
from cart_trace.models.identity import AccountType, IdentityRead
from cart_trace.models.profile import Profile, ProfileRead
from cart_trace.models.tenant import Tenant, TenantRead
from cart_trace.models.user_role import AppRole, UserRole
from cart_trace.services.credentials import resolve_login
from cart_trace.services.provisioning import sign_up_owner

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class SignUpRequest(BaseModel):
    business_name: str = Field(min_length=2, max_length=255)
    full_name: str = Field(min_length=2, max_length=255)
    phone_number: PhoneNumber
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    phone_number: PhoneNumber
    password: str = Field(min_length=1)


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    email: str
    account_type: AccountType


class SignUpResponse(SessionResponse):
    tenant_id: uuid.UUID


class MeResponse(BaseModel):
    user: IdentityRead
    role: AppRole | None
    profile: ProfileRead | None
    tenant: TenantRead | None


# ── Routes ───────────────────────────────────────────────────

@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignUpRequest, admin: Admin) -> SignUpResponse:
    """Register a business owner (``{phone}@owner.internal``) and provision its tenant."""
    result = await sign_up_owner(
        admin,
        business_name=body.business_name,
        full_name=body.full_name,
        phone_number=body.phone_number,
        password=body.password,
    )
    identity = result.session.identity
    return SignUpResponse(
        access_token=result.session.access_token,
        email=identity.email,
        account_type=identity.account_type,
        tenant_id=result.tenant_id,
    )


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, admin: Admin) -> SessionResponse:
    """Authenticate with phone number + password/PIN, receive a JWT."""
    auth = await resolve_login(admin, body.phone_number, body.password)
    return SessionResponse(
        access_token=auth.access_token,
        email=auth.identity.email,
        account_type=auth.identity.account_type,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity, session: Session) -> MeResponse:
    """Return the caller's identity with its profile, tenant and role."""
    profile = (
        await session.execute(select(Profile).where(Profile.user_id == identity.id))
    ).scalar_one_or_none()
    role = (
        await session.execute(select(UserRole.role).where(UserRole.user_id == identity.id))
    ).scalar_one_or_none()
    tenant = await session.get(Tenant, profile.tenant_id) if profile else None

    return MeResponse(
        user=IdentityRead.model_validate(identity),
        role=role,
        profile=ProfileRead.model_validate(profile) if profile else None,
        tenant=TenantRead.model_validate(tenant) if tenant else None,
    )
