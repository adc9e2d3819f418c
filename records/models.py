"""
records/models.py -- Domain dataclasses for the business records.

Pure data containers with zero logic. RecordStore assigns ids; the API layer
owns validation.

id is None before the record is written to a store.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    name: str
    price: float
    stock: int
    id: int | None = None


@dataclass(frozen=True)
class Order:
    """An order for one product.

    product_id refers to a record held by the products service, not by this
    process. The orders service checks it exists (through the peer call)
    before storing the order.
    """

    customer_name: str
    product_id: int
    quantity: int
    status: str = "Pending"  # "Pending" | "Completed"
    id: int | None = None


SEED_PRODUCTS = (
    Product(id=1, name="Product A", price=29.99, stock=100),
    Product(id=2, name="Product B", price=39.99, stock=50),
    Product(id=3, name="Product C", price=49.99, stock=75),
)

SEED_ORDERS = (
    Order(id=1, customer_name="John Doe", product_id=1, quantity=2, status="Completed"),
    Order(id=2, customer_name="Jane Smith", product_id=2, quantity=1, status="Pending"),
)
