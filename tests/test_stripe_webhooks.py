from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from app.db.enums import ArtifactTypeEnum, CreditTransactionTypeEnum, LeadStatusEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.credits import CreditsRepository
from app.db.repositories.leads import LeadsRepository
from app.routers import stripe_webhooks


@pytest.fixture()
def webhook_events(monkeypatch):
    """Queue of events returned by signature verification, in order."""
    monkeypatch.setattr(stripe_webhooks.settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    queued: list[dict] = []

    def _construct_event(payload, signature, secret):
        assert secret == "whsec_test"
        if signature == "bad":
            raise stripe.error.SignatureVerificationError("No signatures found", signature)
        return queued.pop(0)

    monkeypatch.setattr(stripe.Webhook, "construct_event", _construct_event)
    return queued


def _post_webhook(api_client, path="/stripe/webhook", signature="t=1,v1=abc"):
    return api_client.post(path, content=b"{}", headers={"stripe-signature": signature})


def _credit_event(session_id="cs_test_1"):
    return {
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": "pi_1",
                "metadata": {
                    "userId": "buyer",
                    "userEmail": "buyer@example.com",
                    "packageId": "starter",
                    "credits": "100",
                    "type": "credit_purchase",
                },
            }
        },
    }


def test_webhook_requires_secret(api_client):
    resp = _post_webhook(api_client)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Stripe webhook secret is not configured."


def test_webhook_rejects_missing_or_invalid_signature(api_client, webhook_events):
    missing = api_client.post("/stripe/webhook", content=b"{}")
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing Stripe signature header."

    invalid = _post_webhook(api_client, signature="bad")
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid Stripe signature."


def test_credit_purchase_is_applied_once_per_checkout_session(api_client, db_session, webhook_events):
    webhook_events.extend([_credit_event(), _credit_event()])

    assert _post_webhook(api_client).json() == {"received": True}
    assert _post_webhook(api_client).json() == {"received": True}

    db_session.expire_all()
    credits = CreditsRepository(db_session)
    assert credits.get_balance("buyer") == 150
    profile = credits.get_profile("buyer")
    assert profile.lifetime_credits_purchased == 100
    assert profile.email == "buyer@example.com"
    purchases = [txn for txn in credits.history("buyer") if txn.type == CreditTransactionTypeEnum.purchase]
    assert len(purchases) == 1
    assert purchases[0].description == "Purchased Starter credits"
    assert purchases[0].metadata_["stripe_session_id"] == "cs_test_1"


def test_credits_webhook_falls_back_to_primary_secret(api_client, db_session, webhook_events):
    webhook_events.append(_credit_event("cs_test_2"))
    assert _post_webhook(api_client, path="/stripe/credits/webhook").status_code == 200
    db_session.expire_all()
    assert CreditsRepository(db_session).get_balance("buyer") == 150


def test_lead_payment_closes_lead(api_client, db_session, project, webhook_events):
    lead = LeadsRepository(db_session).create(project.id, "Joe's Plumbing")
    webhook_events.append(
        {
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_lead",
                    "amount_total": 150000,
                    "metadata": {"leadId": str(lead.id), "projectId": str(project.id)},
                }
            },
        }
    )

    assert _post_webhook(api_client).status_code == 200

    db_session.expire_all()
    paid = LeadsRepository(db_session).get(project.id, lead.id)
    assert paid.status == LeadStatusEnum.closed
    assert paid.stripe_payment_status == "paid"
    assert paid.paid_amount == Decimal("1500")
    assert paid.paid_at is not None
    projection = ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.leads)
    assert projection["leads"][0]["status"] == "closed"


def test_failed_payment_marks_lead(api_client, db_session, project, webhook_events):
    lead = LeadsRepository(db_session).create(project.id, "Drain Bros")
    webhook_events.append(
        {
            "type": "payment_intent.payment_failed",
            "data": {"object": {"id": "pi_9", "metadata": {"leadId": str(lead.id)}}},
        }
    )

    assert _post_webhook(api_client).status_code == 200
    db_session.expire_all()
    failed = LeadsRepository(db_session).get(project.id, lead.id)
    assert failed.stripe_payment_status == "failed"
    assert failed.status == LeadStatusEnum.new


def test_unhandled_event_is_acknowledged(api_client, webhook_events):
    webhook_events.append({"type": "customer.created", "data": {"object": {"id": "cus_1"}}})
    assert _post_webhook(api_client).json() == {"received": True}


def test_payment_link_records_pending_deal(api_client, db_session, project, monkeypatch):
    monkeypatch.setattr(stripe_webhooks.settings, "STRIPE_SECRET_KEY", "sk_test")
    lead = LeadsRepository(db_session).create(project.id, "Joe's Plumbing")
    created: dict = {}

    def _product(**kwargs):
        created["product"] = kwargs
        return SimpleNamespace(id="prod_1")

    def _price(**kwargs):
        created["price"] = kwargs
        return SimpleNamespace(id="price_1")

    monkeypatch.setattr(stripe.Product, "create", _product)
    monkeypatch.setattr(stripe.Price, "create", _price)
    monkeypatch.setattr(
        stripe.PaymentLink,
        "create",
        lambda **kwargs: SimpleNamespace(id="plink_1", url="https://buy.stripe.com/test"),
    )

    resp = api_client.post(
        "/stripe/create-link",
        json={"leadId": str(lead.id), "projectId": str(project.id), "amount": 1499.5},
    )
    assert resp.status_code == 200
    assert resp.json()["paymentLink"] == {
        "id": "plink_1",
        "url": "https://buy.stripe.com/test",
        "amount": 1499.5,
        "currency": "USD",
    }
    assert created["product"]["name"] == "Website for Joe's Plumbing"
    assert created["price"]["unit_amount"] == 149950

    db_session.expire_all()
    refreshed = LeadsRepository(db_session).get(project.id, lead.id)
    assert refreshed.stripe_payment_status == "pending"
    assert refreshed.deal_value == Decimal("1499.5")
    assert refreshed.stripe_payment_link_url == "https://buy.stripe.com/test"


def test_credit_checkout_rejects_unknown_package(api_client):
    resp = api_client.post("/stripe/credits/checkout", json={"packageId": "mega"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid package"
