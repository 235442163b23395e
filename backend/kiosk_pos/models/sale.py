from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String
from sqlalchemy.orm import relationship

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


PAYMENT_METHODS = ("cash", "card", "transfer", "other")


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    cash_session_id = Column(Integer, ForeignKey("cash_sessions.id", ondelete="SET NULL"), nullable=True, index=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(String(20), nullable=False, default="cash", index=True)
    customer_name = Column(String(255), nullable=True)

    # Lista de precios aplicada al momento de la venta
    price_list_id = Column(Integer, ForeignKey("price_lists.id", ondelete="SET NULL"), nullable=True)
    price_list_name = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)

    sale = relationship("Sale", back_populates="items")
