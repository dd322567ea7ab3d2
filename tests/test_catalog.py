from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog import (
    clear_filters, collation_key, compute_visible_page, filter_products, list_categories,
    parse_query, serialize_query, sort_products, to_query_string, update_query,
)
from schemas import CatalogQueryState, Product

BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


def product(id, name, price, category=None, description=None, days=0, created=True):
    return Product(
        id=str(id),
        name=name,
        price=Decimal(str(price)),
        category=category,
        description=description,
        created_at=BASE + timedelta(days=days) if created else None,
    )


@pytest.fixture
def chocolates():
    return [
        product(1, "Dark Chocolate 70%", "15.99", "Dark Chocolate", "Premium Belgian dark chocolate", days=1),
        product(2, "Milk Chocolate Truffles", "24.99", "Milk Chocolate", "Hand-crafted milk chocolate truffles", days=3),
        product(3, "White Chocolate Hearts", "19.99", "White Chocolate", "Valentine special white chocolate", days=2),
    ]


def names(items):
    return [p.name for p in items]


def test_search_requires_every_term(chocolates):
    q = CatalogQueryState(search_text="dark chocolate", category="all")
    assert names(compute_visible_page(chocolates[:2], q).items) == ["Dark Chocolate 70%"]


def test_search_terms_match_across_fields_in_any_order(chocolates):
    assert names(filter_products(chocolates, CatalogQueryState(search_text="truffles MILK"))) == ["Milk Chocolate Truffles"]
    assert names(filter_products(chocolates, CatalogQueryState(search_text="belgian 70%"))) == ["Dark Chocolate 70%"]
    assert filter_products(chocolates, CatalogQueryState(search_text="belgian truffles")) == []


def test_category_and_price_filters_are_conjunctive(chocolates):
    q = CatalogQueryState(category="Milk Chocolate", max_price=Decimal("20"))
    assert filter_products(chocolates, q) == []
    q = CatalogQueryState(min_price=Decimal("16"), max_price=Decimal("24.99"))
    assert names(sort_products(filter_products(chocolates, q), "price_asc")) == ["White Chocolate Hearts", "Milk Chocolate Truffles"]


def test_price_bounds_are_inclusive(chocolates):
    q = CatalogQueryState(min_price=Decimal("15.99"), max_price=Decimal("15.99"))
    assert names(filter_products(chocolates, q)) == ["Dark Chocolate 70%"]


def test_newest_is_default_and_undated_products_go_last(chocolates):
    undated = product(4, "Old Bar", "5", created=False)
    page = compute_visible_page(chocolates + [undated], CatalogQueryState())
    assert names(page.items) == ["Milk Chocolate Truffles", "White Chocolate Hearts", "Dark Chocolate 70%", "Old Bar"]


def test_naive_and_aware_dates_sort_together():
    items = [
        product(1, "A", "1", days=0),
        Product(id="2", name="B", price=Decimal("1"), created_at=datetime(2026, 6, 1)),
    ]
    assert names(sort_products(items, "newest")) == ["B", "A"]


def test_price_sorts(chocolates):
    assert names(sort_products(chocolates, "price_asc"))[0] == "Dark Chocolate 70%"
    assert names(sort_products(chocolates, "price_desc"))[0] == "Milk Chocolate Truffles"


def test_name_sort_ignores_case_and_accents():
    items = [product(i, n, "1") for i, n in enumerate(["banana", "Äpple", "Cherry", "apple"])]
    assert names(sort_products(items, "name_asc")) == ["apple", "Äpple", "banana", "Cherry"]
    assert names(sort_products(items, "name_desc")) == ["Cherry", "banana", "Äpple", "apple"]


def test_collation_key_groups_case_variants():
    assert collation_key("Éclair")[0] == collation_key("eclair")[0]


@pytest.mark.parametrize("sort", ["newest", "price_asc", "price_desc", "name_asc", "name_desc"])
def test_sort_is_stable_on_ties(sort):
    items = [product(i, "Same", "10", days=0) for i in range(6)]
    assert [p.id for p in sort_products(items, sort)] == [str(i) for i in range(6)]
    assert sort_products(items, sort) == sort_products(list(items), sort)


def test_pages_cover_the_filtered_set_exactly_once():
    items = [product(i, f"Bar {i}", str(i + 1), days=i) for i in range(30)]
    q = CatalogQueryState(sort="price_asc")
    first = compute_visible_page(items, q, page_size=12)
    assert (first.total_count, first.total_pages) == (30, 3)

    seen = []
    for page in range(1, first.total_pages + 1):
        seen.extend(compute_visible_page(items, update_query(q, page=page), page_size=12).items)
    assert seen == sort_products(items, "price_asc")
    assert len({p.id for p in seen}) == 30


def test_page_past_the_end_is_empty_not_an_error():
    items = [product(i, f"Bar {i}", "1") for i in range(20)]
    page = compute_visible_page(items, CatalogQueryState(page=5), page_size=12)
    assert page.items == []
    assert page.total_pages == 2
    assert page.total_count == 20


def test_total_count_never_exceeds_input(chocolates):
    for q in (CatalogQueryState(), CatalogQueryState(search_text="chocolate"), CatalogQueryState(category="nope")):
        assert compute_visible_page(chocolates, q).total_count <= len(chocolates)


def test_empty_catalog_has_no_pages():
    page = compute_visible_page([], CatalogQueryState())
    assert (page.total_count, page.total_pages, page.items) == (0, 0, [])


def test_default_state_serializes_to_nothing():
    assert serialize_query(CatalogQueryState()) == {}
    assert to_query_string(CatalogQueryState()) == ""


def test_query_string_uses_url_parameter_names():
    q = CatalogQueryState(search_text="dark bar", category="Dark Chocolate", min_price=Decimal("10"), sort="price_desc", page=2)
    assert serialize_query(q) == {
        "search": "dark bar",
        "category": "Dark Chocolate",
        "minPrice": "10",
        "sort": "price_desc",
        "page": "2",
    }
    assert to_query_string(q) == "search=dark+bar&category=Dark+Chocolate&minPrice=10&sort=price_desc&page=2"


@pytest.mark.parametrize("state", [
    CatalogQueryState(),
    CatalogQueryState(search_text="  dark  "),
    CatalogQueryState(category="Milk Chocolate", page=3),
    CatalogQueryState(min_price=Decimal("9.50"), max_price=Decimal("100")),
    CatalogQueryState(sort="name_desc"),
])
def test_parse_undoes_serialize(state):
    assert parse_query(serialize_query(state)) == state


def test_malformed_params_fall_back_to_defaults():
    q = parse_query({"minPrice": "abc", "maxPrice": "NaN", "sort": "cheapest", "page": "x"})
    assert q == CatalogQueryState()
    assert parse_query({"maxPrice": "Infinity", "page": "-3"}) == CatalogQueryState()
    assert parse_query({"minPrice": "0"}).min_price == Decimal("0")


def test_blank_category_means_all():
    assert parse_query({"category": ""}).category == "all"


def test_changing_a_filter_resets_the_page():
    q = CatalogQueryState(page=4)
    assert update_query(q, category="Dark Chocolate").page == 1
    assert update_query(q, search_text="milk").page == 1
    assert update_query(q, max_price=Decimal("20")).page == 1


def test_sort_and_page_changes_keep_the_page():
    q = CatalogQueryState(page=4)
    assert update_query(q, sort="price_asc").page == 4
    assert update_query(q, page=2).page == 2
    assert update_query(q, category="all").page == 4


def test_blank_category_update_is_not_a_filter_change():
    q = CatalogQueryState(page=4)
    assert update_query(q, category="") == q
    assert update_query(q, category=None) == q


@pytest.mark.parametrize("raw", ["abc", "", "  ", "NaN", "Infinity", None])
def test_malformed_price_updates_clear_the_bound(raw):
    q = CatalogQueryState(min_price=Decimal("10"), max_price=Decimal("90"), page=3)
    assert update_query(q, min_price=raw).min_price is None
    assert update_query(q, max_price=raw).max_price is None
    assert update_query(q, min_price=raw).page == 1


def test_price_updates_accept_numeric_strings():
    q = update_query(CatalogQueryState(), min_price="25", max_price=40.5)
    assert q.min_price == Decimal("25")
    assert q.max_price == Decimal("40.5")


def test_malformed_page_and_sort_updates_fall_back():
    q = CatalogQueryState(sort="price_asc", page=3)
    assert update_query(q, page="x").page == 1
    assert update_query(q, page="0").page == 1
    assert update_query(q, page="5").page == 5
    assert update_query(q, sort="cheapest").sort == "newest"


def test_clear_filters_returns_default_state():
    q = CatalogQueryState(search_text="x", category="y", min_price=Decimal("1"), sort="price_asc", page=3)
    assert clear_filters(q) == CatalogQueryState()


def test_list_categories(chocolates):
    assert list_categories(chocolates + [product(9, "x", "1")]) == ["Dark Chocolate", "Milk Chocolate", "White Chocolate"]
