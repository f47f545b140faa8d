"""Per-user credit balance with an append-only transaction log."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import CreditTransactionModel, UserCreditsModel
from ._keys import normalize_user_id


class InsufficientCreditsError(RuntimeError):
    """Raised when a user with no remaining credits requests a plan."""


class CreditLedger:
    def balance(self, session: Session, user_id: str) -> int:
        model = self._find(session, normalize_user_id(user_id))
        return model.balance if model else 0

    def deduct_one(self, session: Session, user_id: str, description: str) -> int:
        """Take one credit and log a ``usage`` transaction; returns the new balance."""
        normalized = normalize_user_id(user_id)
        model = self._find(session, normalized, for_update=True)
        if model is None or model.balance <= 0:
            raise InsufficientCreditsError(f"User '{normalized}' has no credits remaining.")
        model.balance -= 1
        session.add(
            CreditTransactionModel(user_id=normalized, amount=-1, type="usage", description=description)
        )
        session.flush()
        return model.balance

    def grant(self, session: Session, user_id: str, amount: int, description: str) -> int:
        """Add credits (e.g. after a completed purchase) and log a ``purchase`` transaction."""
        if amount <= 0:
            raise ValueError("Granted credit amount must be positive.")
        normalized = normalize_user_id(user_id)
        model = self._find(session, normalized, for_update=True)
        if model is None:
            model = UserCreditsModel(user_id=normalized, balance=0)
            session.add(model)
        model.balance += amount
        session.add(
            CreditTransactionModel(user_id=normalized, amount=amount, type="purchase", description=description)
        )
        session.flush()
        return model.balance

    def transactions(self, session: Session, user_id: str, limit: int = 50) -> List[CreditTransactionModel]:
        stmt = (
            select(CreditTransactionModel)
            .where(CreditTransactionModel.user_id == normalize_user_id(user_id))
            .order_by(CreditTransactionModel.id.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())

    def _find(self, session: Session, user_id: str, *, for_update: bool = False) -> Optional[UserCreditsModel]:
        stmt = select(UserCreditsModel).where(UserCreditsModel.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one_or_none()


credit_ledger = CreditLedger()

__all__ = ["CreditLedger", "InsufficientCreditsError", "credit_ledger"]
