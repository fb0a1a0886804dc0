"""Tenant model — one business account, keyed by its phone number."""

import uuid

from sqlmodel import Field, SQLModel

from cart_trace.models.base import TimestampMixin, new_uuid


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    business_name: str = Field(max_length=255, nullable=False)
    phone_number: str = Field(max_length=10, unique=True, nullable=False, index=True)


class TenantRead(SQLModel):
    id: uuid.UUID
    business_name: str
    phone_number: str
