"""Identity model — login record owned by the identity provider."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from cart_trace.models.base import TimestampMixin, new_uuid


class AccountType(StrEnum):
    OWNER = "owner"
    CLIENT = "client"


class Identity(TimestampMixin, SQLModel, table=True):
    __tablename__ = "identities"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)

    # Derived from the login e-mail suffix at creation
    account_type: AccountType = Field(default=AccountType.OWNER)

    user_metadata: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    is_active: bool = Field(default=True)
    last_sign_in_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class IdentityRead(SQLModel):
    id: uuid.UUID
    email: str
    account_type: AccountType
    is_active: bool
