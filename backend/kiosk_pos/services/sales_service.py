"""
Servicio de negocio para ventas.
Registra la venta con precios resueltos por el motor de listas de precios y
la vincula a la sesión de caja abierta.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from kiosk_pos.core import pricing_engine
from kiosk_pos.core.errors import NotFoundError, ValidationError
from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.product import Product
from kiosk_pos.models.sale import PAYMENT_METHODS, Sale, SaleItem
from kiosk_pos.services import cash_session_service, price_list_service


logger = logging.getLogger(__name__)


def validate_stock(db: Session, kiosk_id: int, items: List[Dict[str, Any]]) -> Dict[int, Product]:
    """
    Valida stock y retorna mapa de productos.

    Raises:
        ValidationError: si algún producto no existe o no hay stock suficiente
    """
    product_map: Dict[int, Product] = {}
    # Un mismo producto puede venir en varias líneas: se valida la cantidad total
    requested: Dict[int, int] = {}
    for item in items:
        product_id = item.get("product_id")
        quantity = item.get("quantity", 1)
        if quantity is None or quantity < 1:
            raise ValidationError(f"Cantidad inválida para el producto {product_id}")
        requested[product_id] = requested.get(product_id, 0) + int(quantity)

    for product_id, quantity in requested.items():
        p = db.query(Product).filter(
            Product.id == product_id,
            Product.kiosk_id == kiosk_id,
            Product.active == True,  # noqa: E712
        ).first()
        if not p:
            raise ValidationError(f"Producto inválido: {product_id}")
        if p.stock is not None and p.stock < quantity:
            raise ValidationError(f"Stock insuficiente para {p.name}")
        product_map[product_id] = p
    return product_map


def create_sale(
    db: Session,
    kiosk_id: int,
    user_id: int,
    items: List[Dict[str, Any]],
    at: datetime,
    payment_method: str = "cash",
    customer_name: Optional[str] = None,
    price_list_id: Optional[int] = None,
) -> Sale:
    """
    Crea una venta.

    Args:
        items: lista de {'product_id', 'quantity'}
        at: instante en hora local del kiosco, usado para resolver listas de precios
        price_list_id: lista elegida manualmente por el cajero (opcional)

    Raises:
        InvalidStateError: si no hay caja abierta
        ValidationError: si los datos son inválidos
    """
    if not items:
        raise ValidationError("No hay artículos en la venta")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Medio de pago inválido: {payment_method}")

    session = cash_session_service.require_open_session(db, kiosk_id)

    product_map = validate_stock(db, kiosk_id, items)
    lists = price_list_service.list_price_lists(db, kiosk_id, ensure_default=False)
    if price_list_id is not None and not any(pl.id == price_list_id for pl in lists):
        raise NotFoundError("Lista de precios no encontrada")

    sale = Sale(
        kiosk_id=kiosk_id,
        user_id=user_id,
        cash_session_id=session.id,
        payment_method=payment_method,
        customer_name=customer_name,
        created_at=utcnow(),
    )

    total = Decimal("0")
    applied_ids = set()
    applied = None
    for item in items:
        p = product_map[item["product_id"]]
        quantity = int(item.get("quantity", 1))
        resolution = pricing_engine.resolve(p, lists, at, manual_list_id=price_list_id)
        subtotal = (resolution.final_price * quantity).quantize(Decimal("0.01"))
        total += subtotal
        applied_ids.add(resolution.price_list.id if resolution.price_list is not None else None)
        if resolution.price_list is not None:
            applied = resolution.price_list
        sale.items.append(SaleItem(
            product_id=p.id,
            name=p.name,
            quantity=quantity,
            unit_price=resolution.final_price,
            subtotal=subtotal,
        ))
        if p.stock is not None:
            p.stock = int(p.stock) - quantity

    sale.total = total.quantize(Decimal("0.01"))
    # Solo se registra la lista si todos los artículos se cobraron con ella
    if applied is not None and len(applied_ids) == 1:
        sale.price_list_id = applied.id
        sale.price_list_name = applied.name

    db.add(sale)
    db.commit()
    db.refresh(sale)
    logger.info("sale %s created kiosk=%s total=%s method=%s", sale.id, kiosk_id, sale.total, payment_method)
    return sale
