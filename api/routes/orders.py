"""
api/routes/orders.py -- Order routes (orders service).

Routes:
  GET  /api/orders       -- list all orders
  GET  /api/orders/{id}  -- order detail; id <= 0 -> 400, missing -> 404
  POST /api/orders       -- create order after verifying the product with the peer

Trust propagation:
  POST /api/orders looks the product up in the products service with the
  caller's own bearer token (see auth/relay.py). The products service
  re-validates that token itself; no second login, no shared session.

  A single lookup is made per request. Peer unreachable, timed out, or
  answering non-2xx all reject the order with 400 -- nothing is stored.
  There is no transaction across the two services: once the lookup passes
  the order is stored locally and never rolled back.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import OrderCreate, OrderResponse
from api.peer import PeerClient
from auth.dependencies import get_current_principal
from auth.models import Principal
from core.errors import ValidationError
from records.models import Order
from records.store import RecordStore

logger = logging.getLogger("meshauth.api")

# Every order route requires a valid bearer token.
router = APIRouter(prefix="/orders", dependencies=[Depends(get_current_principal)])


@router.get("", response_model=list[OrderResponse])
async def list_orders(request: Request) -> list[OrderResponse]:
    orders: RecordStore[Order] = request.app.state.orders
    return [_to_response(o) for o in orders.list()]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(request: Request, order_id: int) -> OrderResponse:
    if order_id <= 0:
        raise ValidationError("Order ID must be greater than 0.")
    orders: RecordStore[Order] = request.app.state.orders
    order = orders.get(order_id)
    if order is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Order not found."},
        )
    return _to_response(order)


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    request: Request,
    body: OrderCreate,
    principal: Principal = Depends(get_current_principal),
) -> JSONResponse:
    """Create a Pending order for an existing product.

    Sync handler: the peer lookup is a blocking requests call, so it runs in
    the worker thread pool with the PeerClient timeout bounding it.
    """
    peer: PeerClient = request.app.state.peer
    peer.get_record(request, "products", body.product_id, label="Product")

    orders: RecordStore[Order] = request.app.state.orders
    created = orders.put(
        Order(
            customer_name=body.customer_name,
            product_id=body.product_id,
            quantity=body.quantity,
            status="Pending",
        )
    )
    logger.info("order %d created by %r for product %d", created.id, principal.username, created.product_id)
    return JSONResponse(
        status_code=201,
        content=_to_response(created).model_dump(by_alias=True),
        headers={"Location": f"/api/orders/{created.id}"},
    )


def _to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        customer_name=order.customer_name,
        product_id=order.product_id,
        quantity=order.quantity,
        status=order.status,
    )
