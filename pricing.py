"""
Cart totals and the shipping, VAT and delivery rules for checkout.

Amounts are Decimals kept at full precision; `format_money` rounds to the
currency's minor unit and is only applied when an amount is shown or stored.
"""
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from schemas import CartLineItem, OrderTotals

ZERO = Decimal("0")
FREE_SHIPPING_THRESHOLD = Decimal("500")
DOMESTIC_COUNTRY = "SE"
DOMESTIC_VAT_RATE = Decimal("0.25")

# SEK
SHIPPING_RATES = {
    "SE": Decimal("49"),
    "NO": Decimal("79"),
    "DK": Decimal("79"),
    "FI": Decimal("79"),
    "DE": Decimal("99"),
}
DEFAULT_SHIPPING_RATE = Decimal("149")

DELIVERY_DAYS = {
    "SE": 2,
    "NO": 3,
    "DK": 3,
    "FI": 3,
    "DE": 5,
}
DEFAULT_DELIVERY_DAYS = 7


def _country(code: Optional[str]) -> str:
    return (code or "").strip().upper()


# ----- Cart -----

def line_total(item: CartLineItem) -> Decimal:
    return item.price * item.quantity


def compute_subtotal(items: Iterable[CartLineItem]) -> Decimal:
    return sum((line_total(i) for i in items), ZERO)


def compute_count(items: Iterable[CartLineItem]) -> int:
    return sum(i.quantity for i in items)


# ----- Checkout rules -----

def shipping_cost(country: str, subtotal: Decimal) -> Decimal:
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return ZERO
    return SHIPPING_RATES.get(_country(country), DEFAULT_SHIPPING_RATE)


def calculate_tax(subtotal: Decimal, shipping: Decimal, country: str) -> Decimal:
    """VAT on the shipping-inclusive amount; only the domestic country is taxed."""
    rate = DOMESTIC_VAT_RATE if _country(country) == DOMESTIC_COUNTRY else ZERO
    return (subtotal + shipping) * rate


def estimated_delivery_date(country: str, today: Optional[date] = None) -> date:
    """Calendar-day offset per country, then pushed forward off a weekend.

    This is not a business-day count: weekend days inside the span still
    count, only a Saturday or Sunday landing day is moved to Monday.
    """
    today = today or date.today()
    delivery = today + timedelta(days=DELIVERY_DAYS.get(_country(country), DEFAULT_DELIVERY_DAYS))
    while delivery.weekday() >= 5:
        delivery += timedelta(days=1)
    return delivery


def compute_order_totals(items: Iterable[CartLineItem], country: str, today: Optional[date] = None) -> OrderTotals:
    subtotal = compute_subtotal(items)
    shipping = shipping_cost(country, subtotal)
    tax = calculate_tax(subtotal, shipping, country)
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax_amount=tax,
        total=subtotal + shipping + tax,
        estimated_delivery_date=estimated_delivery_date(country, today),
    )


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str = "SEK") -> str:
    return f"{round_money(amount)} {currency}"
