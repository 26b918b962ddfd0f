from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.db.enums import CreditTransactionTypeEnum
from app.db.models import CreditTransaction, UserProfile

logger = logging.getLogger(__name__)

_ADDABLE_TYPES = {
    CreditTransactionTypeEnum.purchase,
    CreditTransactionTypeEnum.refund,
    CreditTransactionTypeEnum.bonus,
}


class InsufficientCreditsError(Exception):
    def __init__(self, message: str = "Insufficient credits", *, balance: Optional[int] = None) -> None:
        super().__init__(message)
        self.balance = balance


class CreditsRepository:
    """
    Credit ledger: a balance on `user_profiles` plus one `credit_transactions`
    row per change.

    Balance changes are single conditional UPDATE ... RETURNING statements, so
    two concurrent deductions can never take the balance below zero.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.session.get(UserProfile, user_id)

    def get_or_create_profile(self, user_id: str, email: Optional[str] = None) -> UserProfile:
        profile = self.get_profile(user_id)
        if profile is not None:
            return profile

        free_credits = int(settings.FREE_TIER_CREDITS)
        profile = UserProfile(user_id=user_id, email=email, credits=free_credits, lifetime_credits_purchased=0)
        self.session.add(profile)
        try:
            self.session.flush()
        except IntegrityError:
            # Concurrent first request for the same user created the profile.
            self.session.rollback()
            existing = self.get_profile(user_id)
            if existing is None:
                raise
            logger.info("Credit profile created concurrently", extra={"user_id": user_id})
            return existing

        self.session.add(
            CreditTransaction(
                user_id=user_id,
                amount=free_credits,
                balance_after=free_credits,
                type=CreditTransactionTypeEnum.free_tier,
                description="Welcome credits for new users",
                metadata_={},
            )
        )
        self.session.commit()
        self.session.refresh(profile)
        logger.info("Created credit profile", extra={"user_id": user_id, "credits": free_credits})
        return profile

    def get_balance(self, user_id: str) -> int:
        return int(self.get_or_create_profile(user_id).credits)

    def has_credits(self, user_id: str, amount: int) -> bool:
        return self.get_balance(user_id) >= amount

    def deduct(
        self,
        user_id: str,
        amount: int,
        description: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        if amount <= 0:
            raise ValueError("Deduction amount must be positive.")
        self.get_or_create_profile(user_id)

        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id, UserProfile.credits >= amount)
            .values(credits=UserProfile.credits - amount)
            .returning(UserProfile.credits)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = self.session.execute(stmt).scalar_one_or_none()
        if new_balance is None:
            self.session.rollback()
            balance = self.get_balance(user_id)
            logger.info(
                "Credit deduction rejected",
                extra={"user_id": user_id, "amount": amount, "balance": balance},
            )
            raise InsufficientCreditsError("Insufficient credits", balance=balance)

        self.session.add(
            CreditTransaction(
                user_id=user_id,
                amount=-amount,
                balance_after=int(new_balance),
                type=CreditTransactionTypeEnum.deduction,
                description=description,
                metadata_=metadata or {},
            )
        )
        self.session.commit()
        return int(new_balance)

    def add(
        self,
        user_id: str,
        amount: int,
        transaction_type: CreditTransactionTypeEnum,
        description: str,
        metadata: Optional[dict[str, Any]] = None,
        email: Optional[str] = None,
    ) -> int:
        if amount <= 0:
            raise ValueError("Credit amount must be positive.")
        if transaction_type not in _ADDABLE_TYPES:
            raise ValueError(f"Unsupported credit transaction type: {transaction_type}")
        self.get_or_create_profile(user_id, email=email)

        values: dict[str, Any] = {"credits": UserProfile.credits + amount}
        if transaction_type == CreditTransactionTypeEnum.purchase:
            values["lifetime_credits_purchased"] = UserProfile.lifetime_credits_purchased + amount
        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id)
            .values(**values)
            .returning(UserProfile.credits)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = int(self.session.execute(stmt).scalar_one())

        self.session.add(
            CreditTransaction(
                user_id=user_id,
                amount=amount,
                balance_after=new_balance,
                type=transaction_type,
                description=description,
                metadata_=metadata or {},
            )
        )
        self.session.commit()
        return new_balance

    def history(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all())

    def has_purchase_for_session(self, user_id: str, stripe_session_id: str) -> bool:
        stmt = select(CreditTransaction).where(
            CreditTransaction.user_id == user_id,
            CreditTransaction.type == CreditTransactionTypeEnum.purchase,
        )
        return any(
            (txn.metadata_ or {}).get("stripe_session_id") == stripe_session_id
            for txn in self.session.scalars(stmt).all()
        )
