from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from kiosk_pos.core.config import settings
from kiosk_pos.core.database import get_db
from kiosk_pos.core.security import ACCESS, decode_token
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User
from kiosk_pos.core.roles import Role, can_manage_prices


def get_kiosk_slug(request: Request) -> str:
    slug = request.headers.get(settings.kiosk_header)
    if slug:
        return slug
    # Fallback: subdomain e.g., kiosco.myapp.com
    host = request.headers.get("host", "")
    parts = host.split(":")[0].split(".")
    if len(parts) >= 3:
        return parts[0]
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing kiosk header")


def get_kiosk(db: Session = Depends(get_db), kiosk_slug: str = Depends(get_kiosk_slug)) -> Kiosk:
    kiosk = db.query(Kiosk).filter(Kiosk.slug == kiosk_slug).first()
    if not kiosk or not kiosk.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kiosk not found")
    return kiosk


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
    kiosk: Kiosk = Depends(get_kiosk),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token, token_type=ACCESS, kiosk_id=kiosk.id)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user_id = payload.get("sub")
    user = db.query(User).filter(User.id == int(user_id), User.kiosk_id == kiosk.id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not can_manage_prices(user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
    return user


def require_owner(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.owner.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner role required")
    return user
