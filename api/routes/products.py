"""
api/routes/products.py -- Product routes (products service).

Routes:
  GET  /api/products       -- list all products
  GET  /api/products/{id}  -- product detail; id <= 0 -> 400, missing -> 404
  POST /api/products       -- create product; 201 + Location

GET /api/products/{id} is also what the orders service calls, with the
caller's token forwarded, to check a product exists before storing an order.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import ProductCreate, ProductResponse
from auth.dependencies import get_current_principal
from core.errors import ValidationError
from records.models import Product
from records.store import RecordStore

# Every product route requires a valid bearer token.
router = APIRouter(prefix="/products", dependencies=[Depends(get_current_principal)])


@router.get("", response_model=list[ProductResponse])
async def list_products(request: Request) -> list[ProductResponse]:
    products: RecordStore[Product] = request.app.state.products
    return [_to_response(p) for p in products.list()]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(request: Request, product_id: int) -> ProductResponse:
    if product_id <= 0:
        raise ValidationError("Product ID must be greater than 0.")
    products: RecordStore[Product] = request.app.state.products
    product = products.get(product_id)
    if product is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Product not found."},
        )
    return _to_response(product)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(request: Request, body: ProductCreate) -> JSONResponse:
    """Store a new product. The id is assigned by the store (max + 1)."""
    products: RecordStore[Product] = request.app.state.products
    created = products.put(Product(name=body.name, price=body.price, stock=body.stock))
    return JSONResponse(
        status_code=201,
        content=_to_response(created).model_dump(by_alias=True),
        headers={"Location": f"/api/products/{created.id}"},
    )


def _to_response(product: Product) -> ProductResponse:
    return ProductResponse(id=product.id, name=product.name, price=product.price, stock=product.stock)
