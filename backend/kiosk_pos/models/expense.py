from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


EXPENSE_CATEGORIES = ("provider", "service", "withdrawal", "other")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(500), nullable=False)
    category = Column(String(50), nullable=False, default="other")
    payment_method = Column(String(20), nullable=False, default="cash")
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
