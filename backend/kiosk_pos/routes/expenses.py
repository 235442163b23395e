from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from kiosk_pos.core.database import get_db
from kiosk_pos.core.deps import get_current_user, get_kiosk
from kiosk_pos.core.errors import StorageError
from kiosk_pos.models.cash_session import MovementType
from kiosk_pos.models.expense import EXPENSE_CATEGORIES, Expense
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.sale import PAYMENT_METHODS
from kiosk_pos.models.user import User
from kiosk_pos.services import cash_session_service


router = APIRouter()


class ExpenseIn(BaseModel):
    amount: condecimal(max_digits=10, decimal_places=2)
    description: str
    category: str = "other"
    payment_method: str = "cash"


class ExpenseOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    amount: Decimal
    description: str
    category: str
    payment_method: str
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("/", response_model=ExpenseOut, status_code=201)
def create_expense(
    data: ExpenseIn,
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
):
    if data.amount <= 0:
        raise HTTPException(status_code=400, detail="El monto debe ser mayor a 0")
    if not data.description.strip():
        raise HTTPException(status_code=400, detail="La descripción es obligatoria")
    if data.category not in EXPENSE_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Categoría inválida: {data.category}")
    if data.payment_method not in PAYMENT_METHODS:
        raise HTTPException(status_code=400, detail=f"Medio de pago inválido: {data.payment_method}")
    if data.payment_method == "cash":
        # El efectivo sale de la caja abierta como retiro vinculado al gasto
        session = cash_session_service.require_open_session(db, kiosk.id)
        result = cash_session_service.record_manual_movement(
            db, kiosk.id, session.id, user.id,
            movement_type=MovementType.cash_out.value,
            amount=data.amount,
            reason=data.description,
            link_as_expense=True,
            expense_category=data.category,
        )
        if result.expense is None:
            raise StorageError(result.warning)
        return result.expense

    expense = Expense(
        kiosk_id=kiosk.id,
        user_id=user.id,
        amount=data.amount,
        description=data.description.strip(),
        category=data.category,
        payment_method=data.payment_method,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.get("/", response_model=List[ExpenseOut])
def list_expenses(
    db: Session = Depends(get_db),
    kiosk: Kiosk = Depends(get_kiosk),
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=500),
):
    return db.query(Expense).filter(
        Expense.kiosk_id == kiosk.id
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).limit(limit).all()
