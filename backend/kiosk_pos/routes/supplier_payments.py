from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.sale import PAYMENT_METHODS
from kiosk_pos.models.supplier_payment import SupplierPayment
from kiosk_pos.models.user import User
from kiosk_pos.services import cash_session_service


router = APIRouter()


class SupplierPaymentIn(BaseModel):
    supplier_name: str
    amount: condecimal(max_digits=10, decimal_places=2)
    payment_method: str = "cash"
    notes: Optional[str] = None


class SupplierPaymentOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    cash_session_id: Optional[int] = None
    supplier_name: str
    amount: Decimal
    payment_method: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("/", response_model=SupplierPaymentOut, status_code=201)
def create_supplier_payment(
    data: SupplierPaymentIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    if data.amount <= 0:
        raise HTTPException(status_code=400, detail="El monto debe ser mayor a 0")
    if not data.supplier_name.strip():
        raise HTTPException(status_code=400, detail="El proveedor es obligatorio")
    if data.payment_method not in PAYMENT_METHODS:
        raise HTTPException(status_code=400, detail=f"Medio de pago inválido: {data.payment_method}")

    session_id = None
    if data.payment_method == "cash":
        session_id = cash_session_service.require_open_session(db, kiosk.id).id

    payment = SupplierPayment(
        kiosk_id=kiosk.id,
        user_id=user.id,
        cash_session_id=session_id,
        supplier_name=data.supplier_name.strip(),
        amount=data.amount,
        payment_method=data.payment_method,
        notes=data.notes,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


@router.get("/", response_model=List[SupplierPaymentOut])
def list_supplier_payments(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=500),
):
    return db.query(SupplierPayment).filter(
        SupplierPayment.kiosk_id == kiosk.id
    ).order_by(SupplierPayment.created_at.desc(), SupplierPayment.id.desc()).limit(limit).all()
