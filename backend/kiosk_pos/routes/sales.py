from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk
from kiosk_pos.core.timeutils import to_kiosk_local, utcnow
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.sale import Sale
from kiosk_pos.models.user import User
from kiosk_pos.services import sales_service


router = APIRouter()


class SaleItemIn(BaseModel):
    product_id: int
    quantity: int = 1


class SaleIn(BaseModel):
    items: List[SaleItemIn]
    payment_method: str = "cash"
    customer_name: Optional[str] = None
    price_list_id: Optional[int] = None


class SaleOutItem(BaseModel):
    product_id: Optional[int] = None
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    cash_session_id: Optional[int] = None
    total: Decimal
    payment_method: str
    customer_name: Optional[str] = None
    price_list_id: Optional[int] = None
    price_list_name: Optional[str] = None
    created_at: datetime
    items: List[SaleOutItem]

    class Config:
        from_attributes = True


@router.post("/", response_model=SaleOut, status_code=201)
def create_sale(
    data: SaleIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return sales_service.create_sale(
        db,
        kiosk.id,
        user.id,
        items=[it.model_dump() for it in data.items],
        at=to_kiosk_local(utcnow(), kiosk.timezone),
        payment_method=data.payment_method,
        customer_name=data.customer_name,
        price_list_id=data.price_list_id,
    )


@router.get("/", response_model=List[SaleOut])
def list_sales(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    cash_session_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Sale).filter(Sale.kiosk_id == kiosk.id)
    if cash_session_id is not None:
        query = query.filter(Sale.cash_session_id == cash_session_id)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).offset(skip).limit(limit).all()
