"""Role assignment — exactly one role per identity."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from cart_trace.models.base import CreatedMixin, new_uuid


class AppRole(StrEnum):
    ADMIN = "admin"
    CLIENT = "client"


class UserRole(CreatedMixin, SQLModel, table=True):
    __tablename__ = "user_roles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="identities.id", unique=True, nullable=False, index=True
    )
    role: AppRole = Field(nullable=False)
