from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from kiosk_pos.core.database import get_db
from kiosk_pos.core.security import REFRESH, create_token_pair, decode_token, hash_password, verify_password
from kiosk_pos.core.deps import get_kiosk
from kiosk_pos.core.roles import Role
from kiosk_pos.core.timeutils import kiosk_zone
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User


router = APIRouter()


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None
    kiosk_name: str
    kiosk_slug: str
    timezone: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


def _issue_tokens(user: User) -> TokenResponse:
    access, refresh = create_token_pair(user.id, user.kiosk_id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/register", response_model=TokenResponse)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(Kiosk).filter(Kiosk.slug == data.kiosk_slug).first():
        raise HTTPException(status_code=400, detail="Kiosk already exists")

    kiosk = Kiosk(
        name=data.kiosk_name,
        slug=data.kiosk_slug,
        timezone=kiosk_zone(data.timezone).key,
    )
    db.add(kiosk)
    db.flush()

    # Whoever registers a kiosk owns it
    user = User(
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        role=Role.owner.value,
        kiosk_id=kiosk.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _issue_tokens(user)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db), kiosk: Kiosk = Depends(get_kiosk)):
    user = db.query(User).filter(User.email == data.email, User.kiosk_id == kiosk.id).first()
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token_endpoint(data: RefreshRequest, db: Session = Depends(get_db), kiosk: Kiosk = Depends(get_kiosk)):
    payload = decode_token(data.refresh_token, token_type=REFRESH, kiosk_id=kiosk.id)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == int(payload["sub"]), User.kiosk_id == kiosk.id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return _issue_tokens(user)
