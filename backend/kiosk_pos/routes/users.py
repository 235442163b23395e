from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from kiosk_pos.core.deps import get_current_user, get_kiosk, require_owner
from kiosk_pos.core.database import get_db
from kiosk_pos.core.roles import Role, is_valid_role
from kiosk_pos.core.security import hash_password
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User

router = APIRouter()


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None
    role: str = Role.cashier.value


class UserOut(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


@router.get("/", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), kiosk: Kiosk = Depends(get_kiosk), user: User = Depends(get_current_user)):
    """List the kiosk's staff"""
    return db.query(User).filter(User.kiosk_id == kiosk.id).order_by(User.id.asc()).all()


@router.post("/", response_model=UserOut, status_code=201, dependencies=[Depends(require_owner)])
def create_user(data: UserCreate, db: Session = Depends(get_db), kiosk: Kiosk = Depends(get_kiosk)):
    if not is_valid_role(data.role):
        raise HTTPException(status_code=400, detail=f"Invalid role: {data.role}")
    if db.query(User).filter(User.kiosk_id == kiosk.id, User.email == data.email).first():
        raise HTTPException(status_code=400, detail="Email already exists for this kiosk")
    new_user = User(
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        role=data.role,
        kiosk_id=kiosk.id,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


@router.delete("/{user_id}", dependencies=[Depends(require_owner)])
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    current_user: User = Depends(get_current_user),
):
    user_to_delete = db.query(User).filter(User.id == user_id, User.kiosk_id == kiosk.id).first()
    if not user_to_delete:
        raise HTTPException(status_code=404, detail="User not found")
    # Prevent owner from deleting themselves
    if user_to_delete.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete yourself")
    db.delete(user_to_delete)
    db.commit()
    return {"message": "User deleted successfully"}
