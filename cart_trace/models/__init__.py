"""Import all models so SQLModel.metadata picks them up."""

from cart_trace.models.identity import AccountType, Identity, IdentityRead
from cart_trace.models.profile import Profile, ProfileRead
from cart_trace.models.tenant import Tenant, TenantRead
from cart_trace.models.user_role import AppRole, UserRole

__all__ = [
    "AccountType",
    "AppRole",
    "Identity",
    "IdentityRead",
    "Profile",
    "ProfileRead",
    "Tenant",
    "TenantRead",
    "UserRole",
]
