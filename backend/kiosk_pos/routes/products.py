from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk, require_admin
from kiosk_pos.core.timeutils import to_kiosk_local, utcnow
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.product import Category, Product
from kiosk_pos.models.user import User
from kiosk_pos.services import bulk_price_service, price_list_service


router = APIRouter()


class ProductBase(BaseModel):
    name: str
    barcode: Optional[str] = None
    price: condecimal(max_digits=10, decimal_places=2) = Decimal("0")
    cost: condecimal(max_digits=10, decimal_places=2) = Decimal("0")
    stock: int = 0
    min_stock: Optional[int] = None
    category_id: Optional[int] = None
    active: bool = True


class ProductOut(ProductBase):
    id: int

    class Config:
        from_attributes = True


class CategoryIn(BaseModel):
    name: str


class CategoryOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class EffectivePriceOut(BaseModel):
    product_id: int
    base_price: Decimal
    final_price: Decimal
    price_list_id: Optional[int] = None
    price_list_name: Optional[str] = None
    evaluated_at: datetime


class BulkPriceRequest(BaseModel):
    percentage: condecimal(max_digits=6, decimal_places=2)
    product_ids: Optional[List[int]] = None
    category_id: Optional[int] = None


class BulkPriceResponse(BaseModel):
    status: str
    updated_count: int
    history_id: Optional[int] = None
    warning: Optional[str] = None


class PriceHistoryOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action_type: str
    description: str
    affected_products: List[dict]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/", response_model=List[ProductOut])
def list_products(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    q: Optional[str] = Query(None, description="Search by name or barcode"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=2000),
    active: Optional[bool] = Query(None, description="Filter by active status"),
):
    logging.getLogger(__name__).info("list_products q=%s skip=%s limit=%s", q, skip, limit)
    query = db.query(Product).filter(Product.kiosk_id == kiosk.id)
    if q:
        qn = q.strip().lower()
        if qn:
            query = query.filter(
                or_(
                    func.lower(Product.name).like(f"%{qn}%"),
                    func.lower(Product.barcode).like(f"%{qn}%"),
                )
            )
    if active is not None:
        query = query.filter(Product.active == active)
    return query.order_by(Product.name.asc()).offset(skip).limit(limit).all()


@router.post("/", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
def create_product(
    data: ProductBase,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
):
    if data.category_id is not None:
        category = db.query(Category).filter(
            Category.id == data.category_id, Category.kiosk_id == kiosk.id
        ).first()
        if not category:
            raise HTTPException(status_code=400, detail="Categoría inválida")
    product = Product(kiosk_id=kiosk.id, **data.model_dump())
    db.add(product)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if "uq_products_kiosk_barcode" in str(e.orig) or "products.barcode" in str(e.orig):
            raise HTTPException(status_code=400, detail="Barcode already exists for this kiosk")
        raise HTTPException(status_code=400, detail="Invalid product data")
    db.refresh(product)
    return product


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return db.query(Category).filter(Category.kiosk_id == kiosk.id).order_by(Category.name.asc()).all()


@router.post("/categories", response_model=CategoryOut, status_code=201, dependencies=[Depends(require_admin)])
def create_category(
    data: CategoryIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
):
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="El nombre es obligatorio")
    if db.query(Category).filter(Category.kiosk_id == kiosk.id, Category.name == name).first():
        raise HTTPException(status_code=400, detail="Category already exists")
    category = Category(kiosk_id=kiosk.id, name=name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.post("/bulk-price", response_model=BulkPriceResponse)
def bulk_price_update(
    data: BulkPriceRequest,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(require_admin),
):
    result = bulk_price_service.bulk_increase(
        db,
        kiosk.id,
        user.id,
        data.percentage,
        product_ids=data.product_ids,
        category_id=data.category_id,
    )
    return BulkPriceResponse(
        status=result.status,
        updated_count=result.count,
        history_id=result.history_id,
        warning=result.warning,
    )


@router.get("/price-history", response_model=List[PriceHistoryOut])
def price_history(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=200),
):
    return bulk_price_service.get_price_history(db, kiosk.id, limit=limit)


@router.post("/price-history/{history_id}/revert", response_model=BulkPriceResponse)
def revert_price_history(
    history_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(require_admin),
):
    result = bulk_price_service.revert_price_change(db, kiosk.id, user.id, history_id)
    return BulkPriceResponse(status=result.status, updated_count=result.count, history_id=result.history_id)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return price_list_service.get_product(db, kiosk.id, product_id)


@router.get("/{product_id}/price", response_model=EffectivePriceOut)
def get_effective_price(
    product_id: int,
    price_list_id: Optional[int] = Query(None, description="Lista elegida manualmente"),
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    product = price_list_service.get_product(db, kiosk.id, product_id)
    at = to_kiosk_local(utcnow(), kiosk.timezone)
    resolution = price_list_service.resolve_for_product(
        db, kiosk.id, product, at, manual_list_id=price_list_id
    )
    return EffectivePriceOut(
        product_id=product.id,
        base_price=resolution.base_price,
        final_price=resolution.final_price,
        price_list_id=resolution.price_list_id,
        price_list_name=resolution.price_list_name,
        evaluated_at=at,
    )
