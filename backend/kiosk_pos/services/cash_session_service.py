"""
Servicio de caja (turnos).
Contiene la lógica de negocio del ciclo de vida de una sesión de caja:
apertura, movimientos manuales, saldo teórico en vivo y cierre con arqueo.

Todas las operaciones reciben el kiosk_id explícito; no hay kiosco "actual"
implícito. Cada operación se aplica completa o lanza una excepción de
kiosk_pos.core.errors.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kiosk_pos.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from kiosk_pos.core.timeutils import utcnow
from kiosk_pos.models.cash_session import CashMovement, CashSession, CashSessionStatus, MovementType
from kiosk_pos.models.expense import EXPENSE_CATEGORIES, Expense
from kiosk_pos.models.sale import Sale
from kiosk_pos.models.supplier_payment import SupplierPayment


logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
CASH = "cash"
OPEN_SESSION_INDEX = "uq_cash_sessions_open_per_kiosk"
LINKED_EXPENSE_WARNING = "Movimiento guardado, pero falló al crear el gasto asociado."


@dataclass(frozen=True)
class LiveBalance:
    initial: Decimal
    cash_sales: Decimal
    manual_in: Decimal
    manual_out: Decimal
    supplier_payments: Decimal

    @property
    def theoretical_balance(self) -> Decimal:
        return (
            self.initial
            + self.cash_sales
            + self.manual_in
            - self.manual_out
            - self.supplier_payments
        )


@dataclass
class MovementResult:
    """Result of a manual movement; ``warning`` is set when the linked expense failed."""
    movement: CashMovement
    expense: Optional[Expense] = None
    warning: Optional[str] = None

    @property
    def status(self) -> str:
        return "partial" if self.warning else "ok"


def _money(value: Any, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"El campo {field} es obligatorio")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Monto inválido para {field}: {value}")
    if not amount.is_finite():
        raise ValidationError(f"Monto inválido para {field}: {value}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _sum(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


@contextmanager
def _storage_guard(db: Session, action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("storage failure while trying to %s: %s", action, exc)
        raise StorageError(f"No se pudo {action}: error de base de datos") from exc


def get_open_session(db: Session, kiosk_id: int) -> Optional[CashSession]:
    with _storage_guard(db, "consultar la caja abierta"):
        return db.query(CashSession).filter(
            CashSession.kiosk_id == kiosk_id,
            CashSession.status == CashSessionStatus.open.value,
        ).first()


def require_open_session(db: Session, kiosk_id: int) -> CashSession:
    """Guard for sale/expense entry: there must be an open cash session."""
    session = get_open_session(db, kiosk_id)
    if session is None:
        raise InvalidStateError("Debe abrir la caja antes de registrar operaciones")
    return session


def get_session(db: Session, kiosk_id: int, session_id: int) -> CashSession:
    with _storage_guard(db, "consultar la sesión de caja"):
        session = db.query(CashSession).filter(
            CashSession.id == session_id,
            CashSession.kiosk_id == kiosk_id,
        ).first()
    if session is None:
        raise NotFoundError("Sesión de caja no encontrada")
    return session


def list_sessions(
    db: Session,
    kiosk_id: int,
    status: Optional[str] = None,
    limit: int = 50,
) -> List[CashSession]:
    if status is not None and status not in {s.value for s in CashSessionStatus}:
        raise ValidationError(f"Estado de caja inválido: {status}")
    with _storage_guard(db, "listar las sesiones de caja"):
        query = db.query(CashSession).filter(CashSession.kiosk_id == kiosk_id)
        if status is not None:
            query = query.filter(CashSession.status == status)
        return query.order_by(CashSession.opened_at.desc(), CashSession.id.desc()).limit(limit).all()


def list_movements(db: Session, kiosk_id: int, session_id: int) -> List[CashMovement]:
    session = get_session(db, kiosk_id, session_id)
    with _storage_guard(db, "listar los movimientos"):
        return db.query(CashMovement).filter(
            CashMovement.cash_session_id == session.id
        ).order_by(CashMovement.created_at.desc(), CashMovement.id.desc()).all()


def open_shift(
    db: Session,
    kiosk_id: int,
    user_id: int,
    initial_cash: Any,
    now: Optional[datetime] = None,
) -> CashSession:
    """
    Abre un turno de caja para el kiosco.

    Raises:
        ValidationError: si initial_cash es negativo o inválido
        ConflictError: si ya hay una sesión abierta para el kiosco
        StorageError: si falla la base de datos
    """
    amount = _money(initial_cash, "initial_cash")
    if amount < 0:
        raise ValidationError("El efectivo inicial no puede ser negativo")

    if get_open_session(db, kiosk_id) is not None:
        raise ConflictError("Ya hay una sesión de caja abierta para este kiosco")

    session = CashSession(
        kiosk_id=kiosk_id,
        opened_by=user_id,
        opened_at=now or utcnow(),
        initial_cash=amount,
        status=CashSessionStatus.open.value,
    )
    with _storage_guard(db, "abrir la caja"):
        db.add(session)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            msg = str(exc.orig)
            # Concurrent open that slipped past the check above
            if OPEN_SESSION_INDEX in msg or "cash_sessions.kiosk_id" in msg:
                raise ConflictError("Ya hay una sesión de caja abierta para este kiosco") from exc
            raise
        db.refresh(session)

    logger.info("cash session %s opened kiosk=%s user=%s initial=%s", session.id, kiosk_id, user_id, amount)
    return session


def record_manual_movement(
    db: Session,
    kiosk_id: int,
    session_id: int,
    user_id: int,
    movement_type: str,
    amount: Any,
    reason: str,
    link_as_expense: bool = False,
    expense_category: str = "other",
    now: Optional[datetime] = None,
) -> MovementResult:
    """
    Registra un ingreso o retiro manual de efectivo.

    Si es un retiro y link_as_expense es True, además crea un gasto con el
    mismo monto y motivo. Esa segunda escritura es de mejor esfuerzo: si
    falla, el movimiento queda guardado y el resultado lleva una advertencia.
    """
    value = _money(amount, "amount")
    if value <= 0:
        raise ValidationError("El monto debe ser mayor a 0")
    if movement_type not in {t.value for t in MovementType}:
        raise ValidationError(f"Tipo de movimiento inválido: {movement_type}")
    reason_text = (reason or "").strip()
    if not reason_text:
        raise ValidationError("El motivo es obligatorio")
    wants_expense = link_as_expense and movement_type == MovementType.cash_out.value
    if wants_expense and expense_category not in EXPENSE_CATEGORIES:
        raise ValidationError(f"Categoría de gasto inválida: {expense_category}")

    session = get_session(db, kiosk_id, session_id)
    if not session.is_open:
        raise InvalidStateError("La sesión de caja está cerrada")

    created_at = now or utcnow()
    movement = CashMovement(
        cash_session_id=session.id,
        user_id=user_id,
        type=movement_type,
        amount=value,
        reason=reason_text,
        created_at=created_at,
    )
    with _storage_guard(db, "registrar el movimiento"):
        db.add(movement)
        db.commit()
        db.refresh(movement)
    logger.info(
        "cash movement %s recorded session=%s type=%s amount=%s",
        movement.id, session.id, movement_type, value,
    )

    if not wants_expense:
        return MovementResult(movement=movement)
    return _link_expense(db, kiosk_id, user_id, movement, expense_category, created_at)


def _link_expense(
    db: Session,
    kiosk_id: int,
    user_id: int,
    movement: CashMovement,
    category: str,
    created_at: datetime,
) -> MovementResult:
    movement_id = movement.id
    try:
        expense = Expense(
            kiosk_id=kiosk_id,
            user_id=user_id,
            amount=movement.amount,
            description=movement.reason,
            category=category,
            payment_method=CASH,
            created_at=created_at,
        )
        db.add(expense)
        db.flush()
        movement.linked_expense_id = expense.id
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("cash movement %s saved but linked expense failed: %s", movement_id, exc)
        return MovementResult(movement=movement, warning=LINKED_EXPENSE_WARNING)

    db.refresh(movement)
    return MovementResult(movement=movement, expense=expense)


def _balance_for(db: Session, session: CashSession, until: Optional[datetime] = None) -> LiveBalance:
    upper = until or session.closed_at
    with _storage_guard(db, "calcular el saldo de caja"):
        sales = db.query(func.coalesce(func.sum(Sale.total), 0)).filter(
            Sale.kiosk_id == session.kiosk_id,
            Sale.payment_method == CASH,
            Sale.created_at >= session.opened_at,
        )
        payments = db.query(func.coalesce(func.sum(SupplierPayment.amount), 0)).filter(
            SupplierPayment.kiosk_id == session.kiosk_id,
            SupplierPayment.payment_method == CASH,
            SupplierPayment.created_at >= session.opened_at,
        )
        moves = db.query(CashMovement.type, func.sum(CashMovement.amount)).filter(
            CashMovement.cash_session_id == session.id,
        )
        if upper is not None:
            sales = sales.filter(Sale.created_at <= upper)
            payments = payments.filter(SupplierPayment.created_at <= upper)
            moves = moves.filter(CashMovement.created_at <= upper)

        cash_sales = _sum(sales.scalar())
        supplier_payments = _sum(payments.scalar())
        by_type = {t: _sum(total) for t, total in moves.group_by(CashMovement.type).all()}

    return LiveBalance(
        initial=_sum(session.initial_cash),
        cash_sales=cash_sales,
        manual_in=by_type.get(MovementType.cash_in.value, Decimal("0.00")),
        manual_out=by_type.get(MovementType.cash_out.value, Decimal("0.00")),
        supplier_payments=supplier_payments,
    )


def compute_live_balance(db: Session, kiosk_id: int, session_id: int) -> LiveBalance:
    """
    Saldo teórico de la sesión:
    inicial + ventas en efectivo + ingresos manuales - retiros manuales - pagos a proveedores.

    Solo lectura; se recalcula en cada llamada. Para sesiones cerradas el
    cálculo se acota a closed_at.
    """
    session = get_session(db, kiosk_id, session_id)
    return _balance_for(db, session)


def close_shift(
    db: Session,
    kiosk_id: int,
    session_id: int,
    user_id: int,
    final_cash_counted: Any,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CashSession:
    """
    Cierra la sesión (arqueo): congela el saldo esperado al instante del
    cierre y registra la diferencia contra el efectivo contado.

    difference = final_cash - expected_cash (positivo = sobrante, negativo = faltante).

    Raises:
        ValidationError: si el efectivo contado es negativo o inválido
        NotFoundError: si la sesión no pertenece al kiosco
        InvalidStateError: si la sesión ya está cerrada
        StorageError: si falla la base de datos
    """
    final_cash = _money(final_cash_counted, "final_cash")
    if final_cash < 0:
        raise ValidationError("El efectivo contado no puede ser negativo")

    session = get_session(db, kiosk_id, session_id)
    if not session.is_open:
        raise InvalidStateError("La sesión de caja ya está cerrada")

    closed_at = now or utcnow()
    balance = _balance_for(db, session, until=closed_at)
    expected = balance.theoretical_balance
    difference = final_cash - expected

    with _storage_guard(db, "cerrar la caja"):
        # Conditional transition: a concurrent close leaves zero rows to update
        updated = db.query(CashSession).filter(
            CashSession.id == session.id,
            CashSession.status == CashSessionStatus.open.value,
        ).update(
            {
                CashSession.status: CashSessionStatus.closed.value,
                CashSession.closed_at: closed_at,
                CashSession.closed_by: user_id,
                CashSession.final_cash: final_cash,
                CashSession.expected_cash: expected,
                CashSession.difference: difference,
                CashSession.notes: (notes or "").strip() or None,
                CashSession.total_sales_cash: balance.cash_sales,
                CashSession.total_manual_in: balance.manual_in,
                CashSession.total_manual_out: balance.manual_out,
                CashSession.total_supplier_payments: balance.supplier_payments,
            },
            synchronize_session=False,
        )
        if updated != 1:
            db.rollback()
            raise InvalidStateError("La sesión de caja ya está cerrada")
        db.commit()
        db.refresh(session)

    logger.info(
        "cash session %s closed kiosk=%s expected=%s counted=%s difference=%s",
        session.id, kiosk_id, expected, final_cash, difference,
    )
    return session
