"""
Form payloads and their validation.

`validate_form` never raises: it returns a FormResult holding either the
validated model (`ok`) or a field -> message map (`errors`).
"""
from decimal import Decimal
from typing import Any, ClassVar, Dict, Iterable, Literal, Optional, Type

from pydantic import BaseModel, EmailStr, Field, ValidationError, ValidationInfo, field_validator


class Form(BaseModel):
    messages: ClassVar[Dict[str, str]] = {}


class LoginForm(Form):
    email: EmailStr
    password: str = Field(..., min_length=6)

    messages: ClassVar[Dict[str, str]] = {
        "email": "Invalid email address",
        "password": "Password must be at least 6 characters",
    }


class RegisterForm(Form):
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str
    full_name: str = Field(..., min_length=2)
    role: Literal["buyer", "seller"] = "buyer"

    messages: ClassVar[Dict[str, str]] = {
        "email": "Invalid email address",
        "password": "Password must be at least 6 characters",
        "full_name": "Name must be at least 2 characters",
        "role": "Role must be buyer or seller",
    }

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords don't match")
        return v


class ProductForm(Form):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)
    image_url: Optional[str] = None
    is_active: bool = True

    messages: ClassVar[Dict[str, str]] = {
        "name": "Product name is required",
        "price": "Price must be positive",
        "category": "Category is required",
        "stock": "Stock must be a non-negative integer",
    }


class CheckoutForm(Form):
    full_name: str = Field(..., min_length=2)
    email: EmailStr
    address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2)
    postal_code: str = Field(..., min_length=5)
    country: str = Field(..., min_length=2)
    payment_method: Literal["card", "klarna", "paypal"] = "card"

    messages: ClassVar[Dict[str, str]] = {
        "full_name": "Full name is required",
        "email": "Invalid email address",
        "address": "Address is required",
        "city": "City is required",
        "postal_code": "Postal code is required",
        "country": "Country is required",
        "payment_method": "Unsupported payment method",
    }


class FormResult(BaseModel):
    ok: Optional[Any] = None
    errors: Dict[str, str] = {}

    @property
    def is_ok(self) -> bool:
        return not self.errors


def field_errors(errors: Iterable[dict], messages: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Flatten pydantic error dicts to one message per field (first wins)."""
    messages = messages or {}
    result: Dict[str, str] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__all__"
        if field in result:
            continue
        msg = err.get("msg", "Invalid value")
        if err.get("type") == "value_error" and msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        elif field in messages:
            msg = messages[field]
        result[field] = msg
    return result


def validate_form(model: Type[Form], payload: Any) -> FormResult:
    try:
        return FormResult(ok=model.model_validate(payload or {}))
    except ValidationError as e:
        return FormResult(errors=field_errors(e.errors(), model.messages))
