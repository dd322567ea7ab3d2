"""
Role-based routing policy.

Every "where may this role go / where does it land" decision is answered
here, for both the frontend routes and the API role guards.
"""
from typing import Dict, Optional, Tuple

ROLES = ("buyer", "seller", "admin")

PUBLIC_ROUTES: Tuple[str, ...] = ("/", "/login", "/register", "/about", "/catalog", "/product", "/sellers")

# prefixes a signed-in user of each role may open, on top of the public ones
ROLE_ROUTES: Dict[str, Tuple[str, ...]] = {
    "buyer": ("/cart", "/checkout", "/orders", "/profile"),
    "seller": ("/seller",),
    "admin": ("/admin",),
}

HOME_ROUTES: Dict[str, str] = {
    "buyer": "/catalog",
    "seller": "/seller/dashboard",
    "admin": "/admin/dashboard",
}

LOGIN_ROUTE = "/login"


def _under(path: str, prefix: str) -> bool:
    if prefix == "/":
        return path == "/"
    return path == prefix or path.startswith(prefix + "/")


def normalize_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    # unknown roles get the least privilege
    return role if role in ROLES else "buyer"


def home_route(role: Optional[str]) -> str:
    role = normalize_role(role)
    if role is None:
        return "/"
    return HOME_ROUTES[role]


def allowed_routes(role: Optional[str]) -> Tuple[str, ...]:
    role = normalize_role(role)
    if role is None:
        return PUBLIC_ROUTES
    return PUBLIC_ROUTES + ROLE_ROUTES[role]


def can_access(role: Optional[str], path: str) -> bool:
    return any(_under(path, p) for p in allowed_routes(role))


def resolve_redirect(role: Optional[str], path: str) -> Optional[str]:
    """None when `path` may be shown, otherwise where to send the user."""
    if can_access(role, path):
        # signed-in users skip the landing page
        if role is not None and path == "/":
            return home_route(role)
        return None
    if role is None:
        return LOGIN_ROUTE
    return home_route(role)
