from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.models import CreditTransaction
from app.db.repositories.credits import CreditsRepository
from app.services.pricing import CREDIT_COSTS, CREDIT_PACKAGES

router = APIRouter(prefix="/credits", tags=["credits"])


def transaction_to_dict(txn: CreditTransaction) -> dict[str, Any]:
    return {
        "id": str(txn.id),
        "amount": txn.amount,
        "balanceAfter": txn.balance_after,
        "type": txn.type.value,
        "description": txn.description,
        "metadata": txn.metadata_ or {},
        "createdAt": txn.created_at.isoformat() if txn.created_at else None,
    }


@router.get("")
def get_credits(
    history: bool = Query(default=False),
    limit: int = Query(default=20, ge=1),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = CreditsRepository(session)
    profile = repo.get_or_create_profile(auth.user_id, email=auth.email)
    body: dict[str, Any] = {
        "credits": profile.credits,
        "lifetimeCreditsPurchased": profile.lifetime_credits_purchased,
    }
    if history:
        body["transactions"] = [transaction_to_dict(t) for t in repo.history(auth.user_id, limit=min(limit, 50))]
    return body


@router.get("/pricing")
def get_pricing():
    return {
        "costs": CREDIT_COSTS,
        "packages": [
            {"id": p.id, "name": p.name, "credits": p.credits, "price": p.price_usd}
            for p in CREDIT_PACKAGES.values()
        ],
    }
