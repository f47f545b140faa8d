"""Credit balance and transaction history endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from .db.session import get_session_dependency
from .plan_models import WireModel
from .repositories.credits import credit_ledger

router = APIRouter(prefix="/api/credits", tags=["credits"])


class CreditTransactionPayload(WireModel):
    amount: int
    type: str
    description: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")


class CreditBalancePayload(WireModel):
    user_id: str = Field(..., alias="userId")
    balance: int
    transactions: List[CreditTransactionPayload] = Field(default_factory=list)


@router.get("/{user_id}")
def get_credits(
    user_id: str,
    history: int = Query(default=10, ge=0, le=100),
    session: Session = Depends(get_session_dependency),
) -> dict:
    transactions = credit_ledger.transactions(session, user_id, limit=history) if history else []
    payload = CreditBalancePayload(
        user_id=user_id,
        balance=credit_ledger.balance(session, user_id),
        transactions=[
            CreditTransactionPayload(
                amount=entry.amount,
                type=entry.type,
                description=entry.description,
                created_at=entry.created_at,
            )
            for entry in transactions
        ],
    )
    return payload.to_wire()
