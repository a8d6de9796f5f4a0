"""Order API endpoints."""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from canteen.api.auth import SessionUser, require_auth, require_staff
from canteen.core.dependencies import (
    get_menu_service,
    get_order_events,
    get_order_service,
    get_time_slot_service,
)
from canteen.core.errors import NotFoundError, ValidationError
from canteen.db.models import Order
from canteen.services.notifications.feed import OrderEvent, OrderEventFeed
from canteen.services.ordering.board import (
    OrderBoardStats,
    awaiting_collection,
    filter_orders,
    summarize_orders,
)
from canteen.services.ordering.checkout import OrderComposition
from canteen.services.ordering.lifecycle import OrderStatus
from canteen.services.ordering.models import PlaceOrderRequest
from canteen.services.persistence.menu import MenuPersistenceService
from canteen.services.persistence.orders import OrderPersistenceService
from canteen.services.persistence.time_slots import TimeSlotPersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


class OrderItemResponse(BaseModel):
    """Order item response model."""
    id: int
    menu_item_id: int
    name: str
    price: int
    quantity: int
    type: str

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order response model."""
    id: int
    user_id: str
    total: int
    status: str
    time_slot: str
    notes: Optional[str] = None
    token: str
    otp: Optional[str] = None
    otp_verified: bool
    placed_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []


class StatusUpdate(BaseModel):
    """Status change request."""
    status: OrderStatus


class OtpSubmission(BaseModel):
    """Collection code submitted by staff."""
    otp: str


def to_response(order: Order, show_otp: bool = False, include_items: bool = True) -> OrderResponse:
    """Build a response; the OTP is only included for callers allowed to see it."""
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        total=order.total,
        status=order.status,
        time_slot=order.time_slot,
        notes=order.notes,
        token=order.token,
        otp=order.otp if show_otp else None,
        otp_verified=order.otp_verified,
        placed_at=order.placed_at,
        updated_at=order.updated_at,
        items=[OrderItemResponse.model_validate(i) for i in order.items] if include_items else [],
    )


@router.post("/api/orders", response_model=OrderResponse, status_code=201)
async def place_order(
    order_data: PlaceOrderRequest,
    user: SessionUser = Depends(require_auth),
    orders: OrderPersistenceService = Depends(get_order_service),
    menu: MenuPersistenceService = Depends(get_menu_service),
    slots: TimeSlotPersistenceService = Depends(get_time_slot_service),
):
    """Place an order from cart lines and a pickup slot."""
    logger.info(
        f"[ORDERS] Checkout by {user.user_id} - {len(order_data.lines)} line(s), "
        f"slot {order_data.time_slot}"
    )
    if not order_data.lines:
        raise ValidationError("Your cart is empty")

    menu_items = await menu.get_menu_items(line.menu_item_id for line in order_data.lines)
    composition = OrderComposition(slots=await slots.list_time_slots())
    for line in order_data.lines:
        menu_item = menu_items.get(line.menu_item_id)
        if menu_item is None:
            raise NotFoundError(f"Menu item {line.menu_item_id} not found")
        for _ in range(line.quantity):
            composition.add(menu_item)

    composition.select_slot(order_data.time_slot)
    order = await composition.submit(orders, user.user_id, order_data.notes)
    return to_response(order, show_otp=True)


@router.get("/api/orders", response_model=List[OrderResponse])
async def list_orders(
    request: Request,
    tab: str = Query("all", pattern="^(all|active|today)$"),
    search: str = "",
    status: str = "all",
    sort_by: str = Query("newest", pattern="^(newest|oldest|highest|lowest)$"),
    user: SessionUser = Depends(require_auth),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """List the caller's orders, or every order for staff."""
    logger.info(
        f"[ORDERS] List requested by {user.user_id} (staff={user.is_staff}) - "
        f"tab: {tab}, status: {status}, sort: {sort_by}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    found = await orders.list_orders(user_id=user.user_id, is_staff=user.is_staff)
    found = filter_orders(found, tab=tab, search=search, status=status, sort_by=sort_by)
    return [
        to_response(o, show_otp=o.user_id == user.user_id, include_items=False) for o in found
    ]


@router.get("/api/orders/stats", response_model=OrderBoardStats)
async def order_stats(
    staff: SessionUser = Depends(require_staff),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Get order counts for the staff board."""
    return summarize_orders(await orders.list_orders(is_staff=True))


@router.get("/api/orders/awaiting-collection", response_model=List[OrderResponse])
async def orders_awaiting_collection(
    staff: SessionUser = Depends(require_staff),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Active orders whose collection code has not been verified."""
    found = awaiting_collection(await orders.list_orders(is_staff=True))
    return [to_response(o, include_items=False) for o in found]


def format_sse(event: OrderEvent) -> str:
    """Render an order event as one server-sent events message."""
    return f"event: {event.kind}\ndata: {event.model_dump_json()}\n\n"


@router.get("/api/orders/events")
async def stream_order_events(
    staff: SessionUser = Depends(require_staff),
    events: OrderEventFeed = Depends(get_order_events),
):
    """Stream new-order signals to a staff screen as server-sent events."""
    subscription = events.subscribe()
    logger.info(f"[ORDERS] {staff.user_id} subscribed to order events")

    async def stream():
        try:
            async for event in subscription:
                yield format_sse(event)
        finally:
            # Runs on client disconnect too, when the response task is cancelled
            subscription.close()
            logger.info(f"[ORDERS] {staff.user_id} unsubscribed from order events")

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user: SessionUser = Depends(require_auth),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Get an order with its items."""
    order = await orders.require_order(order_id)
    is_owner = order.user_id == user.user_id
    if not (is_owner or user.is_staff):
        raise NotFoundError(f"Order {order_id} not found")
    return to_response(order, show_otp=is_owner)


@router.patch("/api/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    update: StatusUpdate,
    staff: SessionUser = Depends(require_staff),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Move an order to its next status or cancel it."""
    logger.info(f"[ORDERS] {staff.user_id} requests order {order_id} -> {update.status.value}")
    order = await orders.update_status(order_id, update.status)
    return to_response(order)


@router.post("/api/orders/{order_id}/verify", response_model=OrderResponse)
async def verify_order_otp(
    order_id: int,
    submission: OtpSubmission,
    staff: SessionUser = Depends(require_staff),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Hand over a ready order after checking the customer's OTP."""
    order = await orders.verify_otp(order_id, submission.otp)
    return to_response(order)


@router.post("/api/orders/{order_id}/reset-otp", response_model=OrderResponse)
async def reset_order_otp(
    order_id: int,
    staff: SessionUser = Depends(require_staff),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Issue a new OTP for a customer who lost theirs."""
    order = await orders.reset_otp(order_id)
    return to_response(order, show_otp=True)
