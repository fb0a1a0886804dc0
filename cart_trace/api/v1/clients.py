"""Client login creation for business owners."""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cart_trace.api.deps import Admin
from cart_trace.core.validators import PhoneNumber
from cart_trace.services.provisioning import create_client_user

router = APIRouter(tags=["clients"])


class ClientUserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone_number: PhoneNumber = Field(alias="phoneNumber")
    tenant_id: uuid.UUID = Field(alias="tenantId")
    metadata: dict[str, Any] | None = None


class ClientUserCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: uuid.UUID = Field(alias="userId")
    email: str


@router.post("/create-client-user", response_model=ClientUserCreated)
async def create_client_user_route(body: ClientUserCreate, admin: Admin) -> ClientUserCreated:
    """Create a client login + profile + ``client`` role without touching the caller's session."""
    account = await create_client_user(
        admin,
        email=body.email,
        password=body.password,
        phone_number=body.phone_number,
        tenant_id=body.tenant_id,
        metadata=body.metadata,
    )
    return ClientUserCreated(user_id=account.user_id, email=account.email)
