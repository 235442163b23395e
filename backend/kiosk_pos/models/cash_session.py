from enum import Enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.kiosk import Base


class CashSessionStatus(str, Enum):
    open = "open"
    closed = "closed"


class MovementType(str, Enum):
    cash_in = "in"
    cash_out = "out"


class CashSession(Base):
    __tablename__ = "cash_sessions"
    __table_args__ = (
        # At most one open session per kiosk, enforced by the database
        Index(
            "uq_cash_sessions_open_per_kiosk",
            "kiosk_id",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    kiosk_id = Column(Integer, ForeignKey("kiosks.id", ondelete="CASCADE"), nullable=False, index=True)
    opened_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    opened_at = Column(DateTime, nullable=False, default=utcnow)
    initial_cash = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=CashSessionStatus.open.value, index=True)

    # Cierre: todos NULL mientras la sesión está abierta
    closed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime, nullable=True)
    final_cash = Column(Numeric(10, 2), nullable=True)
    expected_cash = Column(Numeric(10, 2), nullable=True)
    difference = Column(Numeric(10, 2), nullable=True)  # final - expected; > 0 sobrante, < 0 faltante
    notes = Column(String(500), nullable=True)

    # Desglose congelado al cierre
    total_sales_cash = Column(Numeric(10, 2), nullable=True)
    total_manual_in = Column(Numeric(10, 2), nullable=True)
    total_manual_out = Column(Numeric(10, 2), nullable=True)
    total_supplier_payments = Column(Numeric(10, 2), nullable=True)

    movements = relationship(
        "CashMovement",
        back_populates="session",
        order_by="CashMovement.created_at.desc()",
    )

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.open.value


class CashMovement(Base):
    __tablename__ = "cash_movements"

    id = Column(Integer, primary_key=True, index=True)
    cash_session_id = Column(Integer, ForeignKey("cash_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(10), nullable=False)  # "in" / "out"
    amount = Column(Numeric(10, 2), nullable=False)
    reason = Column(String(500), nullable=False)
    linked_expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    session = relationship("CashSession", back_populates="movements")
