"""
Catalog filtering, sorting and pagination over an in-memory product list.

The query state round-trips through URL parameters (search, category,
minPrice, maxPrice, sort, page); default values are left out of the URL so
`parse_query(serialize_query(q)) == q` holds for every state.
"""
import logging
import math
import unicodedata
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlencode

from schemas import CatalogPage, CatalogQueryState, Product

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
SORT_KEYS = ("newest", "price_asc", "price_desc", "name_asc", "name_desc")
FILTER_FIELDS = ("search_text", "category", "min_price", "max_price")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# state field -> URL parameter
_PARAMS = {
    "search_text": "search",
    "category": "category",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "sort": "sort",
    "page": "page",
}


# ----- URL state -----

def _parse_price(raw: Optional[str]) -> Optional[Decimal]:
    if raw is None or not str(raw).strip():
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _parse_page(raw: Optional[str]) -> int:
    try:
        page = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def parse_query(params: Mapping[str, str]) -> CatalogQueryState:
    """Build a query state from URL parameters, never raising on bad input."""
    sort = params.get("sort") or "newest"
    if sort not in SORT_KEYS:
        sort = "newest"
    return CatalogQueryState(
        search_text=params.get("search") or "",
        category=params.get("category") or "all",
        min_price=_parse_price(params.get("minPrice")),
        max_price=_parse_price(params.get("maxPrice")),
        sort=sort,
        page=_parse_page(params.get("page")),
    )


def serialize_query(state: CatalogQueryState) -> Dict[str, str]:
    defaults = CatalogQueryState()
    params: Dict[str, str] = {}
    for field, param in _PARAMS.items():
        value = getattr(state, field)
        if value is None or value == getattr(defaults, field):
            continue
        params[param] = str(value)
    return params


def to_query_string(state: CatalogQueryState) -> str:
    return urlencode(serialize_query(state))


def _clean(field: str, value):
    if field in ("min_price", "max_price"):
        return _parse_price(value)
    if field == "page":
        return _parse_page(value)
    if field == "sort":
        return value if value in SORT_KEYS else "newest"
    if field == "category":
        return value or "all"
    if field == "search_text":
        return value or ""
    return value


def update_query(state: CatalogQueryState, **changes) -> CatalogQueryState:
    """Return a new state with `changes` applied.

    Values are cleaned the same way `parse_query` cleans URL parameters.
    Changing a filter field sends the user back to page 1 unless the caller
    sets the page in the same update. Sort and page changes keep the page.
    """
    changes = {field: _clean(field, value) for field, value in changes.items() if field in _PARAMS}
    current = state.model_dump()
    filter_changed = any(
        field in changes and changes[field] != current[field] for field in FILTER_FIELDS
    )
    current.update(changes)
    if filter_changed and "page" not in changes:
        current["page"] = 1
    return CatalogQueryState(**current)


def clear_filters(state: CatalogQueryState) -> CatalogQueryState:
    return CatalogQueryState()


# ----- Filtering -----

def _searchable_text(product: Product) -> str:
    return " ".join(
        part for part in (product.name, product.description or "", product.category or "") if part
    ).lower()


def matches(product: Product, query: CatalogQueryState) -> bool:
    terms = query.search_text.lower().split()
    if terms:
        text = _searchable_text(product)
        if not all(term in text for term in terms):
            return False
    if query.category != "all" and product.category != query.category:
        return False
    if query.min_price is not None and product.price < query.min_price:
        return False
    if query.max_price is not None and product.price > query.max_price:
        return False
    return True


def filter_products(products: Iterable[Product], query: CatalogQueryState) -> List[Product]:
    return [p for p in products if matches(p, query)]


# ----- Sorting -----

def collation_key(name: str) -> tuple:
    """Accent- and case-insensitive primary key, with case/accent tiebreaks."""
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), decomposed.casefold(), name)


def _created_key(product: Product) -> datetime:
    created = product.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        # pymongo hands back naive UTC datetimes
        return created.replace(tzinfo=timezone.utc)
    return created


def sort_products(products: Iterable[Product], sort: str) -> List[Product]:
    """Stable sort; equal keys keep their input order, also when descending."""
    items = list(products)
    if sort == "price_asc":
        return sorted(items, key=lambda p: p.price)
    if sort == "price_desc":
        return sorted(items, key=lambda p: p.price, reverse=True)
    if sort == "name_asc":
        return sorted(items, key=lambda p: collation_key(p.name))
    if sort == "name_desc":
        return sorted(items, key=lambda p: collation_key(p.name), reverse=True)
    return sorted(items, key=_created_key, reverse=True)


# ----- Pagination -----

def compute_visible_page(products: Iterable[Product], query: CatalogQueryState, page_size: int = DEFAULT_PAGE_SIZE) -> CatalogPage:
    page_size = max(int(page_size), 1)
    result = sort_products(filter_products(products, query), query.sort)
    total_count = len(result)
    total_pages = math.ceil(total_count / page_size)
    page = max(query.page, 1)
    start = (page - 1) * page_size
    items = result[start:start + page_size]
    logger.debug("catalog page %s/%s: %s of %s products", page, total_pages, len(items), total_count)
    return CatalogPage(items=items, total_count=total_count, total_pages=total_pages, page=page)


def list_categories(products: Iterable[Product]) -> List[str]:
    return sorted({p.category for p in products if p.category}, key=collation_key)
