"""Security utilities: secret hashing, session tokens and PIN generation."""

import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from cart_trace.core.config import get_settings

settings = get_settings()

# ── Password / PIN hashing (Argon2) ──────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── PINs ──────────────────────────────────────────────────────

PIN_MIN = 100000
PIN_MAX = 999999


def generate_pin() -> str:
    """Return a uniformly sampled 6-digit numeric PIN (100000..999999)."""
    return str(PIN_MIN + secrets.randbelow(PIN_MAX - PIN_MIN + 1))


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(
    subject: str,
    email: str,
    account_type: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "email": email,
        "account_type": account_type,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
