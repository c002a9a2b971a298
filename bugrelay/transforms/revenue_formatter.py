"""
Revenue Formatter
=================
Normalises RevenueCat and Stripe webhook payloads into a RevenueEvent.

Recognised sources:
    RevenueCat                  — payload.event.type
    Stripe subscriptions        — payload.type "customer.subscription.*"
    Stripe payment intents      — payload.type "payment_intent.*"

Stripe amounts are in minor units and are divided by 100. RevenueCat
SUBSCRIBER_ALIAS events carry no revenue and are skipped (None).
Anything unrecognised becomes an UNKNOWN event rather than an error.
"""
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from bugrelay.models.revenue_event import RevenueEvent

REVENUECAT_TYPES = {
    "INITIAL_PURCHASE": ("\U0001F389", "NEW PURCHASE"),
    "RENEWAL":          ("\U0001F504", "RENEWAL"),
    "CANCELLATION":     ("❌", "CANCEL"),
    "UNCANCELLATION":   ("\U0001F519", "REACTIVATE"),
    "BILLING_ISSUE":    ("⚠️", "BILLING ISSUE"),
}
REVENUECAT_SKIPPED = {"SUBSCRIBER_ALIAS"}

STRIPE_SUBSCRIPTION_TYPES = {
    "customer.subscription.created": ("\U0001F389", "NEW SUBSCRIPTION"),
    "customer.subscription.updated": ("\U0001F504", "SUBSCRIPTION UPDATED"),
    "customer.subscription.deleted": ("❌", "SUBSCRIPTION CANCELED"),
}

STRIPE_PAYMENT_TYPES = {
    "payment_intent.succeeded":      ("✅", "PAYMENT SUCCESS"),
    "payment_intent.payment_failed": ("\U0001F494", "PAYMENT FAILED"),
}


def _obj(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _minor_units(value: Any) -> float:
    return value / 100 if isinstance(value, (int, float)) and not isinstance(value, bool) and value else 0


def format_revenue_event(payload: Any, now: Optional[datetime] = None) -> Optional[RevenueEvent]:
    payload = _obj(payload)
    event = RevenueEvent(
        timestamp=(now or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
    )

    rc = _obj(payload.get("event"))
    event_type = _text(payload.get("type"), "")
    # Non-string event types are treated as absent
    rc_type = _text(rc.get("type"), "")

    if rc_type:
        if rc_type in REVENUECAT_SKIPPED:
            return None
        event.source = "RevenueCat"
        event.emoji, event.event_type = REVENUECAT_TYPES.get(rc_type, (event.emoji, rc_type))
        price = rc.get("price")
        event.amount = price if isinstance(price, (int, float)) and not isinstance(price, bool) else 0
        event.currency = _text(rc.get("currency"), "USD")
        event.customer = _text(rc.get("app_user_id"), "Unknown")
        event.product = _text(rc.get("product_id"), "Unknown")

    elif event_type.startswith("customer.subscription"):
        event.source = "Stripe"
        event.emoji, event.event_type = STRIPE_SUBSCRIPTION_TYPES.get(event_type, (event.emoji, event_type))
        sub = _obj(_obj(payload.get("data")).get("object"))
        if sub:
            plan = _obj(sub.get("plan"))
            event.amount = _minor_units(plan.get("amount"))
            event.currency = str(plan["currency"]).upper() if plan.get("currency") else "USD"
            event.customer = sub.get("customer") or "Unknown"
            event.product = plan.get("nickname") or plan.get("id") or "Unknown"

    elif event_type.startswith("payment_intent"):
        event.source = "Stripe"
        event.emoji, event.event_type = STRIPE_PAYMENT_TYPES.get(event_type, (event.emoji, event_type))
        intent = _obj(_obj(payload.get("data")).get("object"))
        if intent:
            event.amount = _minor_units(intent.get("amount"))
            event.currency = str(intent["currency"]).upper() if intent.get("currency") else "USD"
            event.customer = intent.get("customer") or "Unknown"

    return event
