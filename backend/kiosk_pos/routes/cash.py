from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from kiosk_pos.core.config import settings
from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User
from kiosk_pos.services import cash_session_service


router = APIRouter()


class OpenSessionIn(BaseModel):
    initial_cash: condecimal(max_digits=10, decimal_places=2)


class CloseSessionIn(BaseModel):
    final_cash: condecimal(max_digits=10, decimal_places=2)  # Lo que el cajero contó físicamente
    notes: Optional[str] = None


class MovementIn(BaseModel):
    type: str  # "in" / "out"
    amount: condecimal(max_digits=10, decimal_places=2)
    reason: str
    link_as_expense: bool = False
    expense_category: str = "other"


class CashSessionOut(BaseModel):
    id: int
    kiosk_id: int
    status: str
    opened_by: Optional[int] = None
    opened_at: datetime
    initial_cash: Decimal
    closed_by: Optional[int] = None
    closed_at: Optional[datetime] = None
    final_cash: Optional[Decimal] = None
    expected_cash: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    notes: Optional[str] = None
    total_sales_cash: Optional[Decimal] = None
    total_manual_in: Optional[Decimal] = None
    total_manual_out: Optional[Decimal] = None
    total_supplier_payments: Optional[Decimal] = None

    class Config:
        from_attributes = True


class MovementOut(BaseModel):
    id: int
    cash_session_id: int
    user_id: Optional[int] = None
    type: str
    amount: Decimal
    reason: str
    linked_expense_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MovementResultOut(BaseModel):
    status: str  # "ok" o "partial" si falló el gasto asociado
    warning: Optional[str] = None
    movement: MovementOut
    expense_id: Optional[int] = None


class BalanceOut(BaseModel):
    session_id: int
    status: str
    initial: Decimal
    cash_sales: Decimal
    manual_in: Decimal
    manual_out: Decimal
    supplier_payments: Decimal
    theoretical_balance: Decimal
    refresh_after_seconds: int


@router.get("/sessions/current", response_model=Optional[CashSessionOut])
def get_current_session(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    """Devuelve la sesión abierta del kiosco, o null si la caja está cerrada."""
    return cash_session_service.get_open_session(db, kiosk.id)


@router.post("/sessions/open", response_model=CashSessionOut, status_code=201)
def open_session(
    data: OpenSessionIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return cash_session_service.open_shift(db, kiosk.id, user.id, data.initial_cash)


@router.get("/sessions", response_model=List[CashSessionOut])
def list_sessions(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    status: Optional[str] = Query(None, description="open / closed"),
    limit: int = Query(50, ge=1, le=500),
):
    return cash_session_service.list_sessions(db, kiosk.id, status=status, limit=limit)


@router.get("/sessions/{session_id}", response_model=CashSessionOut)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return cash_session_service.get_session(db, kiosk.id, session_id)


@router.get("/sessions/{session_id}/balance", response_model=BalanceOut)
def get_balance(
    session_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    """Saldo teórico en vivo. El cliente vuelve a consultar cada refresh_after_seconds."""
    session = cash_session_service.get_session(db, kiosk.id, session_id)
    balance = cash_session_service.compute_live_balance(db, kiosk.id, session_id)
    return BalanceOut(
        session_id=session.id,
        status=session.status,
        initial=balance.initial,
        cash_sales=balance.cash_sales,
        manual_in=balance.manual_in,
        manual_out=balance.manual_out,
        supplier_payments=balance.supplier_payments,
        theoretical_balance=balance.theoretical_balance,
        refresh_after_seconds=settings.balance_refresh_seconds,
    )


@router.post("/sessions/{session_id}/movements", response_model=MovementResultOut, status_code=201)
def create_movement(
    session_id: int,
    data: MovementIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    result = cash_session_service.record_manual_movement(
        db,
        kiosk.id,
        session_id,
        user.id,
        movement_type=data.type,
        amount=data.amount,
        reason=data.reason,
        link_as_expense=data.link_as_expense,
        expense_category=data.expense_category,
    )
    return MovementResultOut(
        status=result.status,
        warning=result.warning,
        movement=MovementOut.model_validate(result.movement),
        expense_id=result.expense.id if result.expense is not None else None,
    )


@router.get("/sessions/{session_id}/movements", response_model=List[MovementOut])
def list_movements(
    session_id: int,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return cash_session_service.list_movements(db, kiosk.id, session_id)


@router.post("/sessions/{session_id}/close", response_model=CashSessionOut)
def close_session(
    session_id: int,
    data: CloseSessionIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    return cash_session_service.close_shift(
        db, kiosk.id, session_id, user.id, data.final_cash, notes=data.notes
    )
