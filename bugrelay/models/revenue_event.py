"""
Revenue Event Model
Normalised RevenueCat / Stripe event posted to the revenue Discord channel.
"""
from pydantic import BaseModel


class RevenueEvent(BaseModel):
    emoji: str = "\U0001F4B0"
    event_type: str = "UNKNOWN"
    amount: float = 0
    currency: str = "USD"
    customer: str = "Unknown"
    product: str = "Unknown"
    source: str = "unknown"
    timestamp: str
