"""
Aumentos masivos de precios con historial y reversión.

Independiente de las listas de precios: modifica el precio base de los
productos y deja un registro en price_changes_history.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kiosk_pos.core.errors import NotFoundError, ValidationError
from kiosk_pos.models.price_list import PriceChangeHistory
from kiosk_pos.models.product import Category, Product


logger = logging.getLogger(__name__)


@dataclass
class BulkPriceResult:
    count: int
    history_id: Optional[int] = None
    warning: Optional[str] = None

    @property
    def status(self) -> str:
        return "partial" if self.warning else "ok"


def increased_price(price: Any, percentage: Decimal) -> Decimal:
    """New price after a bulk increase; always rounded up to a whole unit."""
    old = Decimal(str(price or 0))
    factor = Decimal("1") + percentage / Decimal("100")
    return (old * factor).to_integral_value(rounding=ROUND_CEILING)


def _fmt(value: Any) -> str:
    return format(Decimal(str(value)).normalize(), "f") if value is not None else "0"


def _log_history(
    db: Session,
    kiosk_id: int,
    user_id: int,
    action_type: str,
    description: str,
    affected: List[Dict[str, Any]],
) -> PriceChangeHistory:
    history = PriceChangeHistory(
        kiosk_id=kiosk_id,
        user_id=user_id,
        action_type=action_type,
        description=description,
        affected_products=affected,
    )
    db.add(history)
    db.commit()
    db.refresh(history)
    return history


def bulk_increase(
    db: Session,
    kiosk_id: int,
    user_id: int,
    percentage: Any,
    product_ids: Optional[List[int]] = None,
    category_id: Optional[int] = None,
) -> BulkPriceResult:
    """
    Aplica un aumento porcentual a los productos seleccionados o a una categoría.

    Los precios se actualizan primero; si luego falla el registro en el
    historial, el aumento queda aplicado y el resultado lleva una advertencia.
    """
    pct = Decimal(str(percentage))
    if pct == 0:
        raise ValidationError("El porcentaje no puede ser 0")
    if pct <= Decimal("-100"):
        raise ValidationError("El porcentaje debe ser mayor a -100")
    if not product_ids and category_id is None:
        raise ValidationError("No hay productos seleccionados")

    query = db.query(Product).filter(Product.kiosk_id == kiosk_id)
    if product_ids:
        query = query.filter(Product.id.in_(product_ids))
        action_type = "BULK_MANUAL"
    else:
        category = db.query(Category).filter(
            Category.id == category_id, Category.kiosk_id == kiosk_id
        ).first()
        if not category:
            raise NotFoundError("Categoría no encontrada")
        query = query.filter(Product.category_id == category_id)
        action_type = "BULK_CATEGORY"

    products = query.all()
    if not products:
        raise NotFoundError("No se encontraron productos para actualizar")

    affected = []
    for product in products:
        new_price = increased_price(product.price, pct)
        affected.append({
            "id": product.id,
            "name": product.name,
            "old_price": float(product.price),
            "new_price": float(new_price),
        })
        product.price = new_price
    db.commit()

    if action_type == "BULK_MANUAL":
        description = f"Aumento Manual {_fmt(pct)}% ({len(affected)} productos)"
    else:
        description = f"Aumento {_fmt(pct)}% a categoría {category.name}"

    try:
        history = _log_history(db, kiosk_id, user_id, action_type, description, affected)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("bulk price update applied but history log failed kiosk=%s: %s", kiosk_id, exc)
        return BulkPriceResult(
            count=len(affected),
            warning=f"Precios actualizados, pero falló el registro en el historial: {exc}",
        )

    logger.info("bulk price update kiosk=%s products=%s pct=%s", kiosk_id, len(affected), pct)
    return BulkPriceResult(count=len(affected), history_id=history.id)


def get_price_history(db: Session, kiosk_id: int, limit: int = 20) -> List[PriceChangeHistory]:
    return db.query(PriceChangeHistory).filter(
        PriceChangeHistory.kiosk_id == kiosk_id
    ).order_by(PriceChangeHistory.created_at.desc(), PriceChangeHistory.id.desc()).limit(limit).all()


def revert_price_change(db: Session, kiosk_id: int, user_id: int, history_id: int) -> BulkPriceResult:
    history = db.query(PriceChangeHistory).filter(
        PriceChangeHistory.id == history_id,
        PriceChangeHistory.kiosk_id == kiosk_id,
    ).first()
    if not history:
        raise NotFoundError("Registro no encontrado")

    entries = history.affected_products or []
    if not entries:
        return BulkPriceResult(count=0)

    products = {
        p.id: p for p in db.query(Product).filter(
            Product.kiosk_id == kiosk_id,
            Product.id.in_([e["id"] for e in entries]),
        ).all()
    }
    reverted = []
    for entry in entries:
        product = products.get(entry["id"])
        if product is None:
            continue
        product.price = Decimal(str(entry["old_price"]))
        # The revert is itself a change: from the bulk's new price back to its old one
        reverted.append({
            "id": entry["id"],
            "name": entry.get("name"),
            "old_price": entry["new_price"],
            "new_price": entry["old_price"],
        })
    db.commit()

    revert = _log_history(
        db, kiosk_id, user_id, "REVERT", f"Reversión de: {history.description}", reverted
    )
    return BulkPriceResult(count=len(reverted), history_id=revert.id)
