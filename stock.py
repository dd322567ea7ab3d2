import logging
from typing import Callable, Dict, Iterable, List, Sequence

from schemas import CartLineItem, Product, StockFailure, StockValidationResult

logger = logging.getLogger(__name__)


def requested_quantities(cart_items: Iterable[CartLineItem]) -> Dict[str, int]:
    # several lines for one product count against the same stock
    requested: Dict[str, int] = {}
    for item in cart_items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
    return requested


def validate_stock(cart_items: Sequence[CartLineItem], live_products: Iterable[Product]) -> StockValidationResult:
    """Check every cart product against authoritative stock, reporting all problems."""
    requested = requested_quantities(cart_items)
    if not requested:
        return StockValidationResult(valid=False, failures=[StockFailure(reason="empty_cart")])

    live = {p.id: p for p in live_products}
    failures: List[StockFailure] = []
    for product_id, qty in requested.items():
        product = live.get(product_id)
        if product is None:
            failures.append(StockFailure(product_id=product_id, reason="not_found"))
            continue
        available = product.stock or 0
        if available <= 0:
            failures.append(StockFailure(product_id=product_id, reason="sold_out"))
        elif qty > available:
            failures.append(StockFailure(product_id=product_id, reason="insufficient_stock", available_qty=available))

    if failures:
        logger.debug("stock check failed: %s", [f.model_dump() for f in failures])
    return StockValidationResult(valid=not failures, failures=failures)


def check_stock(cart_items: Sequence[CartLineItem], fetch_products: Callable[[List[str]], Iterable[Product]]) -> StockValidationResult:
    """Validate against freshly fetched products; an empty cart never hits the store."""
    requested = requested_quantities(cart_items)
    if not requested:
        return StockValidationResult(valid=False, failures=[StockFailure(reason="empty_cart")])
    return validate_stock(cart_items, fetch_products(list(requested)))


def failure_message(failure: StockFailure, cart_items: Iterable[CartLineItem]) -> str:
    names = {i.product_id: i.name for i in cart_items}
    name = names.get(failure.product_id, "A product")
    if failure.reason == "empty_cart":
        return "Your cart is empty"
    if failure.reason == "sold_out":
        return f"{name} is sold out"
    if failure.reason == "insufficient_stock":
        return f"Only {failure.available_qty} left of {name}"
    return f"{name} is no longer available"
