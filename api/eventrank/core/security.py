"""JWT helpers for tokens minted by the external auth boundary."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import JWTError, jwt

from .config import settings

ROLE_ADMIN = "admin"
ROLE_CURATOR = "curator"


def create_access_token(
    subject: str,
    *,
    roles: Iterable[str] = (),
    expires_delta: timedelta = timedelta(minutes=30),
) -> str:
    """Create a signed access token; used by local tooling and tests."""
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "roles": sorted(set(roles)),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a JWT and return its payload if valid."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
