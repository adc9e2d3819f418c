"""
API request and response models for the products and orders services.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
records/models.py, which own the internal representation. Route handlers map
between the two.

Wire format is camelCase (expiresIn, customerName, productId) to stay
compatible with existing clients; Python attributes stay snake_case via the
alias generator. populate_by_name lets either spelling through on input.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    """One field-level validation failure, message passed through verbatim."""

    field: str
    message: str


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None
    fields: Optional[list[FieldError]] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope: {"error": {"code": ..., "message": ...}}."""

    error: ErrorDetail


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(_WireModel):
    """Response for GET /health.

    peer_service is only present on services that have a peer. It reports
    reachability for operators; nothing is gated on it.
    """

    status: str = "healthy"
    timestamp: datetime
    peer_service: Optional[Literal["reachable", "unreachable"]] = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login.

    Values are NOT stripped: the username is the rate-limit and account key
    verbatim, and whitespace is significant in passwords.
    """

    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=100)

    @field_validator("username", "password")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class LoginResponse(_WireModel):
    model_config = ConfigDict(frozen=True)

    token: str
    expires_in: int


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(_WireModel):
    """Request body for POST /api/products."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0, description="Unit price. Must not be negative.")
    stock: int = Field(ge=0, description="Units in stock. Must not be negative.")


class ProductResponse(_WireModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: float
    stock: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderCreate(_WireModel):
    """Request body for POST /api/orders.

    status is not accepted from clients; new orders always start as Pending.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: str = Field(min_length=1, max_length=100)
    product_id: int = Field(ge=1, description="Id of a product in the products service.")
    quantity: int = Field(ge=1)


class OrderResponse(_WireModel):
    model_config = ConfigDict(frozen=True)

    id: int
    customer_name: str
    product_id: int
    quantity: int
    status: str
