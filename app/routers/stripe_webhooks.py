from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.config import settings
from app.db.deps import get_session
from app.db.enums import CreditTransactionTypeEnum, LeadStatusEnum
from app.db.repositories.credits import CreditsRepository
from app.db.repositories.leads import LeadsRepository
from app.routers.projects import require_project
from app.schemas.billing import CreditCheckoutRequest, PaymentLinkRequest
from app.services.lead_projection import refresh_leads_projection
from app.services.pricing import get_credit_package

router = APIRouter(prefix="/stripe", tags=["stripe"])
logger = logging.getLogger(__name__)

CREDIT_PURCHASE_TYPE = "credit_purchase"


def _configure_stripe() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stripe is not configured.",
        )
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


@router.post("/credits/checkout")
def create_credit_checkout(
    payload: CreditCheckoutRequest,
    auth: AuthContext = Depends(get_current_user),
):
    package = get_credit_package(payload.packageId)
    if package is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid package")
    _configure_stripe()

    site_url = settings.SITE_URL.rstrip("/")
    try:
        checkout_session = stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": "usd",
                        "product_data": {
                            "name": f"{package.name} Credit Package",
                            "description": f"{package.credits} credits for Anything",
                        },
                        "unit_amount": package.price_cents,
                    },
                    "quantity": 1,
                }
            ],
            metadata={
                "userId": auth.user_id,
                "userEmail": auth.email or "",
                "packageId": package.id,
                "credits": str(package.credits),
                "type": CREDIT_PURCHASE_TYPE,
            },
            customer_email=auth.email or None,
            success_url=f"{site_url}/?credits=success&package={package.id}",
            cancel_url=f"{site_url}/pricing?canceled=true",
        )
    except stripe.error.StripeError as exc:
        logger.exception("Stripe checkout creation failed", extra={"package_id": package.id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from exc
    return {"sessionId": checkout_session.id, "url": checkout_session.url}


@router.post("/create-link")
def create_payment_link(
    payload: PaymentLinkRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.leadId or not payload.projectId or not payload.amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: leadId, projectId, amount",
        )
    require_project(session, auth.user_id, payload.projectId)
    leads = LeadsRepository(session)
    lead = leads.get(payload.projectId, payload.leadId)
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    _configure_stripe()

    currency = payload.currency.lower()
    metadata = {"leadId": str(lead.id), "projectId": str(payload.projectId)}
    try:
        product = stripe.Product.create(
            name=payload.description or f"Website for {lead.company_name}",
            metadata=metadata,
        )
        price = stripe.Price.create(
            product=product.id,
            unit_amount=int(round(payload.amount * 100)),
            currency=currency,
        )
        payment_link = stripe.PaymentLink.create(
            line_items=[{"price": price.id, "quantity": 1}],
            metadata={**metadata, "leadName": lead.company_name},
            after_completion={
                "type": "redirect",
                "redirect": {"url": f"{settings.SITE_URL.rstrip('/')}/payment-success?lead_id={lead.id}"},
            },
        )
    except stripe.error.StripeError as exc:
        logger.exception("Stripe payment link creation failed", extra={"lead_id": str(lead.id)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create payment link",
        ) from exc

    leads.apply(
        lead,
        stripe_payment_link_id=payment_link.id,
        stripe_payment_link_url=payment_link.url,
        stripe_payment_status="pending",
        deal_value=Decimal(str(payload.amount)),
        deal_currency=currency.upper(),
    )
    refresh_leads_projection(session, payload.projectId)
    return {
        "success": True,
        "paymentLink": {
            "id": payment_link.id,
            "url": payment_link.url,
            "amount": payload.amount,
            "currency": currency.upper(),
        },
    }


def _handle_credit_purchase(session: Session, checkout: Any, metadata: dict[str, Any]) -> None:
    user_id = metadata.get("userId")
    try:
        credits = int(metadata.get("credits") or 0)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credits in metadata.") from exc
    if not user_id or credits <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required metadata: userId")

    repo = CreditsRepository(session)
    stripe_session_id = checkout.get("id")
    if stripe_session_id and repo.has_purchase_for_session(user_id, stripe_session_id):
        logger.info("Duplicate credit purchase webhook ignored", extra={"stripe_session_id": stripe_session_id})
        return
    package = get_credit_package(metadata.get("packageId"))
    balance = repo.add(
        user_id,
        credits,
        CreditTransactionTypeEnum.purchase,
        f"Purchased {package.name if package else credits} credits",
        {
            "stripe_session_id": stripe_session_id,
            "stripe_payment_intent": checkout.get("payment_intent"),
            "package_id": metadata.get("packageId"),
        },
        email=metadata.get("userEmail") or None,
    )
    logger.info("Credits purchased", extra={"user_id": user_id, "credits": credits, "balance": balance})


def _handle_lead_payment(session: Session, checkout: Any, lead_id: Optional[UUID]) -> None:
    leads = LeadsRepository(session)
    lead = leads.get_any(lead_id) if lead_id else None
    if lead is None:
        logger.warning("Payment webhook for unknown lead", extra={"lead_id": str(lead_id)})
        return
    amount_total = checkout.get("amount_total")
    leads.apply(
        lead,
        stripe_payment_status="paid",
        paid_at=datetime.now(timezone.utc),
        paid_amount=Decimal(amount_total) / 100 if amount_total is not None else None,
        status=LeadStatusEnum.closed,
    )
    refresh_leads_projection(session, lead.project_id)


def _handle_failed_payment(session: Session, lead_id: Optional[UUID]) -> None:
    leads = LeadsRepository(session)
    lead = leads.get_any(lead_id) if lead_id else None
    if lead is None:
        return
    leads.apply(lead, stripe_payment_status="failed")
    refresh_leads_projection(session, lead.project_id)


async def _process_webhook(request: Request, session: Session, webhook_secret: Optional[str]) -> dict[str, bool]:
    if not webhook_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stripe webhook secret is not configured.",
        )

    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe signature header.")

    payload = await request.body()
    try:
        event = stripe.Webhook.construct_event(payload, signature, webhook_secret)
    except (stripe.error.SignatureVerificationError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Stripe signature.") from exc

    event_type = event.get("type")
    data = event.get("data", {})
    obj = data.get("object") if data else None
    if not obj:
        return {"received": True}
    metadata = dict(obj.get("metadata") or {})

    if event_type == "checkout.session.completed":
        if metadata.get("type") == CREDIT_PURCHASE_TYPE:
            _handle_credit_purchase(session, obj, metadata)
        elif metadata.get("leadId"):
            _handle_lead_payment(session, obj, _parse_uuid(metadata.get("leadId")))
    elif event_type == "payment_intent.payment_failed" and metadata.get("leadId"):
        _handle_failed_payment(session, _parse_uuid(metadata.get("leadId")))
    return {"received": True}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
):
    return await _process_webhook(request, session, settings.STRIPE_WEBHOOK_SECRET)


@router.post("/credits/webhook")
async def stripe_credits_webhook(
    request: Request,
    session: Session = Depends(get_session),
):
    return await _process_webhook(
        request, session, settings.STRIPE_CREDITS_WEBHOOK_SECRET or settings.STRIPE_WEBHOOK_SECRET
    )
