"""
Fabricated order endpoints.

Order creation walks through simulated payment and inventory steps, each in
its own child span, so one request produces a small span tree.
"""

import asyncio
import uuid
from typing import List

from fastapi import APIRouter

from api.deps import utc_now_iso
from api.models import OrderItem, OrderRequest, OrderResponse
from errors.exceptions import validation_error
from telemetry.correlated_logging import get_logger
from telemetry.service import get_tracer

logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

PAYMENT_DELAY_SECONDS = 0.1
INVENTORY_DELAY_SECONDS = 0.075
ORDER_LOOKUP_DELAY_SECONDS = 0.05


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(payload: OrderRequest):
    logger.info("Creating new order", user_id=payload.user_id, item_count=len(payload.items))

    if not payload.items:
        logger.warning("Order creation failed: no items", user_id=payload.user_id)
        raise validation_error(
            "Order must contain at least one item", details={"field": "items"}
        )

    total_amount = sum(item.price * item.quantity for item in payload.items)

    await process_payment(payload.user_id, total_amount)
    await check_inventory(payload.items)

    order = OrderResponse(
        order_id=str(uuid.uuid4()),
        user_id=payload.user_id,
        total_amount=total_amount,
        status="confirmed",
        created_at=utc_now_iso(),
    )

    logger.info("Order created successfully", order_id=order.order_id, total_amount=total_amount)
    return order


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str):
    logger.info("Fetching order", order_id=order_id)

    await asyncio.sleep(ORDER_LOOKUP_DELAY_SECONDS)

    order = OrderResponse(
        order_id=order_id,
        user_id="user-123",
        total_amount=99.99,
        status="shipped",
        created_at=utc_now_iso(),
    )

    logger.debug("Order found", order_id=order_id)
    return order


async def process_payment(user_id: str, amount: float) -> None:
    with get_tracer(__name__).start_as_current_span(
        "process_payment", attributes={"user.id": user_id, "payment.amount": amount}
    ):
        logger.info("Processing payment", user_id=user_id, amount=amount)
        # Payment gateway call
        await asyncio.sleep(PAYMENT_DELAY_SECONDS)
        logger.debug("Payment processed successfully")


async def check_inventory(items: List[OrderItem]) -> None:
    with get_tracer(__name__).start_as_current_span(
        "check_inventory", attributes={"order.item_count": len(items)}
    ):
        logger.info("Checking inventory", item_count=len(items))
        await asyncio.sleep(INVENTORY_DELAY_SECONDS)
        logger.debug("Inventory check completed")
