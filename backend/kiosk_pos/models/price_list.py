from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Boolean, DateTime, JSON

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


ROUNDING_RULES = ("none", "nearest_10", "nearest_50", "nearest_100")


class PriceList(Base):
    __tablename__ = "price_lists"

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    adjustment_percentage = Column(Numeric(6, 2), nullable=False, default=0)  # +20 recargo, -10 descuento
    rounding_rule = Column(String(20), nullable=False, default="none")
    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=0)
    # [{"day": 0..6 (0 = domingo), "start": "HH:MM", "end": "HH:MM"}]; vacío = solo activación manual
    # "end" admite "24:00" para cerrar a medianoche; no hay franjas que crucen de día
    schedule = Column(JSON, nullable=True)
    excluded_category_ids = Column(JSON, nullable=True)
    excluded_product_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class PriceChangeHistory(Base):
    __tablename__ = "price_changes_history"

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action_type = Column(String(20), nullable=False)  # BULK_MANUAL, BULK_CATEGORY, REVERT
    description = Column(String(500), nullable=False)
    affected_products = Column(JSON, nullable=False)  # [{id, name, old_price, new_price}]
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
