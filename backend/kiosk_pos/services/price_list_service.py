"""
Administración de listas de precios del kiosco y consulta de la lista vigente.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from kiosk_pos.core import pricing_engine
from kiosk_pos.core.errors import NotFoundError, ValidationError
from kiosk_pos.models.price_list import ROUNDING_RULES, PriceList
from kiosk_pos.models.product import Product


logger = logging.getLogger(__name__)

DEFAULT_LIST_NAME = "Lista Base"

EDITABLE_FIELDS = (
    "name",
    "adjustment_percentage",
    "rounding_rule",
    "is_active",
    "priority",
    "schedule",
    "excluded_category_ids",
    "excluded_product_ids",
)


def normalize_schedule(entries: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
    """Validate schedule entries and return them as stored (None when empty)."""
    if not entries:
        return None
    normalized = []
    for entry in entries:
        window = pricing_engine.ScheduleWindow.from_entry(entry)
        if window is None:
            raise ValidationError(f"Horario inválido: {entry}")
        if not window.is_valid:
            # Overnight windows (22:00-02:00) are not supported
            raise ValidationError(
                f"El horario {entry.get('start')}-{entry.get('end')} debe terminar después de empezar"
            )
        normalized.append({
            "day": window.day,
            "start": pricing_engine.format_hhmm(window.start),
            "end": pricing_engine.format_hhmm(window.end),
        })
    return normalized


def _validate(values: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = dict(values)
    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if not name:
            raise ValidationError("El nombre es obligatorio")
        cleaned["name"] = name
    if "rounding_rule" in cleaned:
        rule = cleaned["rounding_rule"] or "none"
        if rule not in ROUNDING_RULES:
            raise ValidationError(f"Regla de redondeo inválida: {rule}")
        cleaned["rounding_rule"] = rule
    if "adjustment_percentage" in cleaned:
        try:
            pct = Decimal(str(cleaned["adjustment_percentage"] or 0))
        except InvalidOperation:
            raise ValidationError("Porcentaje de ajuste inválido")
        if pct <= Decimal("-100"):
            raise ValidationError("El ajuste no puede ser de -100% o menos")
        cleaned["adjustment_percentage"] = pct
    if "schedule" in cleaned:
        cleaned["schedule"] = normalize_schedule(cleaned["schedule"])
    for key in ("excluded_category_ids", "excluded_product_ids"):
        if key in cleaned:
            cleaned[key] = sorted({int(i) for i in cleaned[key] or []})
    return cleaned


def list_price_lists(db: Session, kiosk_id: int, ensure_default: bool = True) -> List[PriceList]:
    lists = db.query(PriceList).filter(
        PriceList.kiosk_id == kiosk_id
    ).order_by(PriceList.created_at.asc(), PriceList.id.asc()).all()

    if not lists and ensure_default:
        default = PriceList(
            kiosk_id=kiosk_id,
            name=DEFAULT_LIST_NAME,
            adjustment_percentage=Decimal("0"),
            rounding_rule="none",
            is_active=True,
            priority=0,
        )
        db.add(default)
        db.commit()
        db.refresh(default)
        logger.info("default price list created for kiosk=%s", kiosk_id)
        lists = [default]
    return lists


def get_price_list(db: Session, kiosk_id: int, price_list_id: int) -> PriceList:
    price_list = db.query(PriceList).filter(
        PriceList.id == price_list_id,
        PriceList.kiosk_id == kiosk_id,
    ).first()
    if not price_list:
        raise NotFoundError("Lista de precios no encontrada")
    return price_list


def create_price_list(db: Session, kiosk_id: int, values: Dict[str, Any]) -> PriceList:
    if not values.get("name"):
        raise ValidationError("El nombre es obligatorio")
    cleaned = _validate({k: v for k, v in values.items() if k in EDITABLE_FIELDS})
    price_list = PriceList(kiosk_id=kiosk_id, **cleaned)
    db.add(price_list)
    db.commit()
    db.refresh(price_list)
    return price_list


def update_price_list(db: Session, kiosk_id: int, price_list_id: int, values: Dict[str, Any]) -> PriceList:
    price_list = get_price_list(db, kiosk_id, price_list_id)
    nullable = {"schedule", "excluded_category_ids", "excluded_product_ids"}
    cleaned = _validate({
        k: v for k, v in values.items()
        if k in EDITABLE_FIELDS and (v is not None or k in nullable)
    })
    for key, value in cleaned.items():
        setattr(price_list, key, value)
    db.commit()
    db.refresh(price_list)
    return price_list


def delete_price_list(db: Session, kiosk_id: int, price_list_id: int) -> None:
    price_list = get_price_list(db, kiosk_id, price_list_id)
    db.delete(price_list)
    db.commit()


def get_product(db: Session, kiosk_id: int, product_id: int) -> Product:
    product = db.query(Product).filter(
        Product.id == product_id,
        Product.kiosk_id == kiosk_id,
    ).first()
    if not product:
        raise NotFoundError(f"Producto no encontrado: {product_id}")
    return product


def resolve_for_product(
    db: Session,
    kiosk_id: int,
    product: Product,
    at: datetime,
    manual_list_id: Optional[int] = None,
) -> pricing_engine.PriceResolution:
    """Load the kiosk's lists and run the pricing engine for one product."""
    lists = list_price_lists(db, kiosk_id, ensure_default=False)
    if manual_list_id is not None and not any(pl.id == manual_list_id for pl in lists):
        raise NotFoundError("Lista de precios no encontrada")
    return pricing_engine.resolve(product, lists, at, manual_list_id=manual_list_id)
