from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

import jwt
from passlib.context import CryptContext

from kiosk_pos.core.config import settings


password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return password_context.verify(password, hashed_password)


def create_token(subject: str, expires_minutes: int, token_type: str, kiosk_id: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now,
    }
    if kiosk_id is not None:
        # Tokens are only valid against the kiosk that issued them
        payload["kiosk"] = kiosk_id
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_token_pair(user_id: int, kiosk_id: int) -> Tuple[str, str]:
    """Access + refresh tokens for a kiosk user."""
    access = create_token(str(user_id), settings.access_token_expire_minutes, ACCESS, kiosk_id=kiosk_id)
    refresh = create_token(str(user_id), settings.refresh_token_expire_minutes, REFRESH, kiosk_id=kiosk_id)
    return access, refresh


def decode_token(token: str, token_type: Optional[str] = None, kiosk_id: Optional[int] = None) -> Optional[dict[str, Any]]:
    """
    Decode and check a token. Returns None when the signature, expiry, type or
    kiosk claim does not match.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
    if token_type is not None and payload.get("type") != token_type:
        return None
    if kiosk_id is not None and payload.get("kiosk") not in (None, kiosk_id):
        return None
    return payload
