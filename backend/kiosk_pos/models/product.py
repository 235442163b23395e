from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, Boolean, DateTime
from sqlalchemy.orm import relationship

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("kiosk_id", "name", name="uq_categories_kiosk_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("kiosk_id", "barcode", name="uq_products_kiosk_barcode"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    barcode = Column(String(100), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # Base price before any price list
    cost = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)

    category = relationship("Category")
