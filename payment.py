"""
Mock payment provider.

Stands in for Stripe/Klarna/PayPal; a configurable share of payments is
declined so the failure path can be exercised.
"""
import logging
import random
import secrets
import time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from config import PAYMENT_FAILURE_RATE

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("card", "klarna", "paypal")


class PaymentResult(BaseModel):
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None


class MockPaymentGateway:
    def __init__(self, failure_rate: float = PAYMENT_FAILURE_RATE, rng: Optional[random.Random] = None):
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()

    def process(self, amount: Decimal, currency: str = "SEK", method: str = "card") -> PaymentResult:
        if method not in PAYMENT_METHODS:
            return PaymentResult(success=False, error=f"Unsupported payment method: {method}")
        if amount <= 0:
            return PaymentResult(success=False, error="Payment amount must be positive")
        if self.rng.random() < self.failure_rate:
            logger.warning("mock payment declined: %s %s via %s", amount, currency, method)
            return PaymentResult(
                success=False,
                error="Payment processing failed. Please try again or use a different payment method.",
            )
        transaction_id = f"txn_{int(time.time() * 1000)}_{secrets.token_hex(5)}"
        logger.info("mock payment accepted: %s %s via %s (%s)", amount, currency, method, transaction_id)
        return PaymentResult(success=True, transaction_id=transaction_id)


_gateway = MockPaymentGateway()


def get_payment_gateway() -> MockPaymentGateway:
    return _gateway
