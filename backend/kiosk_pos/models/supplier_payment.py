from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


class SupplierPayment(Base):
    __tablename__ = "supplier_payments"

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cash_session_id = Column(Integer, ForeignKey("cash_sessions.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_name = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False, default="cash")
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
