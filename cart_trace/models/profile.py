"""Profile model — links an identity to exactly one tenant."""

import uuid

from sqlmodel import Field, SQLModel

from cart_trace.models.base import TimestampMixin, new_uuid


class Profile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="identities.id", unique=True, nullable=False, index=True
    )
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    full_name: str = Field(default="", max_length=255)
    phone_number: str = Field(max_length=10, nullable=False, index=True)


class ProfileRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    tenant_id: uuid.UUID
    full_name: str
    phone_number: str
