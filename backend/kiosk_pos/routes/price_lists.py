from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk, require_admin
from kiosk_pos.core.timeutils import to_kiosk_local, utcnow
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User
from kiosk_pos.services import price_list_service


router = APIRouter()


class ScheduleEntry(BaseModel):
    day: int  # 0 = domingo
    start: str  # "HH:MM"
    end: str


class PriceListBase(BaseModel):
    name: str
    adjustment_percentage: condecimal(max_digits=6, decimal_places=2) = Decimal("0")
    rounding_rule: str = "none"
    is_active: bool = True
    priority: int = 0
    schedule: List[ScheduleEntry] = []
    excluded_category_ids: List[int] = []
    excluded_product_ids: List[int] = []


class PriceListUpdate(BaseModel):
    name: Optional[str] = None
    adjustment_percentage: Optional[condecimal(max_digits=6, decimal_places=2)] = None
    rounding_rule: Optional[str] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None
    schedule: Optional[List[ScheduleEntry]] = None
    excluded_category_ids: Optional[List[int]] = None
    excluded_product_ids: Optional[List[int]] = None


class PriceListOut(BaseModel):
    id: int
    name: str
    adjustment_percentage: Decimal
    rounding_rule: str
    is_active: bool
    priority: int
    schedule: Optional[List[ScheduleEntry]] = None
    excluded_category_ids: Optional[List[int]] = None
    excluded_product_ids: Optional[List[int]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ActivePriceListOut(BaseModel):
    product_id: int
    evaluated_at: datetime
    price_list: Optional[PriceListOut] = None
    base_price: Decimal
    final_price: Decimal


@router.get("/", response_model=List[PriceListOut])
def list_price_lists(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return price_list_service.list_price_lists(db, kiosk.id)


@router.get("/active", response_model=ActivePriceListOut)
def get_active_price_list(
    product_id: int = Query(..., description="Producto a evaluar"),
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    """Lista que se aplicaría automáticamente ahora mismo (hora local del kiosco)."""
    product = price_list_service.get_product(db, kiosk.id, product_id)
    at = to_kiosk_local(utcnow(), kiosk.timezone)
    resolution = price_list_service.resolve_for_product(db, kiosk.id, product, at)
    return ActivePriceListOut(
        product_id=product.id,
        evaluated_at=at,
        price_list=PriceListOut.model_validate(resolution.price_list) if resolution.price_list else None,
        base_price=resolution.base_price,
        final_price=resolution.final_price,
    )


@router.post("/", response_model=PriceListOut, status_code=201, dependencies=[Depends(require_admin)])
def create_price_list(
    data: PriceListBase,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
):
    return price_list_service.create_price_list(db, kiosk.id, data.model_dump())


@router.put("/{price_list_id}", response_model=PriceListOut, dependencies=[Depends(require_admin)])
def update_price_list(
    price_list_id: int,
    data: PriceListUpdate,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
):
    return price_list_service.update_price_list(
        db, kiosk.id, price_list_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{price_list_id}", dependencies=[Depends(require_admin)])
def delete_price_list(
    price_list_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
):
    price_list_service.delete_price_list(db, kiosk.id, price_list_id)
    return {"message": "Lista eliminada"}
