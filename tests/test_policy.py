import pytest

from policy import can_access, home_route, resolve_redirect


@pytest.mark.parametrize("role, home", [
    ("buyer", "/catalog"),
    ("seller", "/seller/dashboard"),
    ("admin", "/admin/dashboard"),
    ("mystery", "/catalog"),
    (None, "/"),
])
def test_home_routes(role, home):
    assert home_route(role) == home


def test_anonymous_users_see_public_pages_only():
    assert can_access(None, "/catalog")
    assert can_access(None, "/product/42")
    assert not can_access(None, "/cart")
    assert resolve_redirect(None, "/checkout") == "/login"
    assert resolve_redirect(None, "/") is None


def test_roles_are_kept_to_their_own_areas():
    assert can_access("buyer", "/checkout")
    assert not can_access("buyer", "/seller/products")
    assert can_access("seller", "/seller/products/1/edit")
    assert not can_access("seller", "/checkout")
    assert not can_access("admin", "/seller/dashboard")
    assert resolve_redirect("seller", "/admin/sellers") == "/seller/dashboard"


def test_prefix_match_respects_path_segments():
    assert not can_access("seller", "/sellerish")
    assert not can_access("admin", "/administrator")


def test_signed_in_users_skip_the_landing_page():
    assert resolve_redirect("admin", "/") == "/admin/dashboard"
    assert resolve_redirect("buyer", "/catalog") is None
