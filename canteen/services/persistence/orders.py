"""Order persistence service."""
import logging
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from canteen.core.config import settings
from canteen.core.errors import (
    InvalidOTP,
    InvalidTransition,
    NotFoundError,
    PersistenceError,
    TerminalOrder,
    ValidationError,
)
from canteen.db.models import Order, OrderItem
from canteen.services.notifications.feed import OrderEventFeed
from canteen.services.ordering.cart import Cart
from canteen.services.ordering.lifecycle import (
    ACTIVE_STATUSES,
    OrderStatus,
    is_terminal,
    validate_transition,
)
from canteen.services.ordering.models import CartItem
from canteen.services.ordering.otp import (
    check_otp_format,
    generate_otp,
    generate_token,
    otp_matches,
)
from canteen.services.persistence.base import PersistenceService

logger = logging.getLogger(__name__)


class OrderPersistenceService(PersistenceService):
    """Service for persisting order data."""

    def __init__(
        self,
        db: AsyncSession,
        events: Optional[OrderEventFeed] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(db, timeout=timeout)
        self.events = events

    async def create_order(
        self,
        user_id: str,
        cart: Cart,
        time_slot: str,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Create an order header and its lines.

        The header is written first. If its commit or the lines fail, the header
        is deleted again before the error propagates, so no order is left without
        lines.
        """
        if cart.is_empty():
            raise ValidationError("Your cart is empty")
        if not time_slot:
            raise ValidationError("Please select a pickup time")

        otp = await self._fresh_otp()
        try:
            order = await self._io(
                self._insert_order(
                    user_id=user_id,
                    total=cart.total(),
                    time_slot=time_slot,
                    notes=notes or None,
                    token=generate_token(),
                    otp=otp,
                ),
                "create order",
            )
        except PersistenceError:
            await self._io(self.db.rollback(), "discard order header")
            raise
        order_id = order.id

        # From here on the header may be committed, so every failure is compensated
        try:
            await self._io(self.db.commit(), "commit order")
            await self._io(self._insert_order_items(order_id, cart.items), "create order items")
        except Exception as e:
            logger.error(
                f"[ORDERS] Order {order_id} could not be completed, rolling back header: "
                f"{type(e).__name__}: {e}"
            )
            await self._rollback_order(order_id)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError("Failed to create order items") from e

        logger.info(
            f"[ORDERS] Order {order_id} placed by {user_id} - total {cart.total()}, "
            f"slot {time_slot}, {len(cart.items)} line(s)"
        )
        created = await self.get_order_by_id(order_id)
        if self.events is not None:
            self.events.order_inserted(order_id, created.placed_at)
        return created

    async def _insert_order(self, **fields) -> Order:
        """Stage the header and flush it to obtain its id, without committing."""
        order = Order(
            status=OrderStatus.PLACED.value,
            otp_verified=False,
            **fields,
        )
        self.db.add(order)
        await self.db.flush()
        return order

    async def _insert_order_items(self, order_id: int, lines: List[CartItem]) -> List[OrderItem]:
        order_items = [
            OrderItem(
                order_id=order_id,
                menu_item_id=line.menu_item_id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                type=line.type.value,
            )
            for line in lines
        ]
        self.db.add_all(order_items)
        await self.db.commit()
        return order_items

    async def _rollback_order(self, order_id: int) -> None:
        """Delete a just-inserted order header after its lines failed."""
        try:
            await self._io(self.db.rollback(), "discard failed order items")
            await self._io(self._delete_order(order_id), "roll back order")
            logger.info(f"[ORDERS] Rolled back order {order_id}")
        except PersistenceError:
            logger.error(f"[ORDERS] Rollback of order {order_id} failed, header may be orphaned")
            raise

    async def _delete_order(self, order_id: int) -> None:
        await self.db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        await self.db.execute(delete(Order).where(Order.id == order_id))
        await self.db.commit()

    async def _fresh_otp(self) -> str:
        """Draw an OTP not held by another active order, within a bounded number of tries."""
        active = await self.list_active_otps()
        otp = generate_otp()
        for _ in range(settings.otp_unique_attempts - 1):
            if otp not in active:
                return otp
            otp = generate_otp()
        if otp in active:
            logger.warning("[ORDERS] Could not draw an unused OTP, accepting a duplicate")
        return otp

    async def list_active_otps(self) -> Set[str]:
        """OTPs of orders that can still be collected."""
        result = await self._io(
            self.db.execute(
                select(Order.otp).where(
                    Order.status.in_([s.value for s in ACTIVE_STATUSES]),
                    Order.otp_verified.is_(False),
                )
            ),
            "load active OTPs",
        )
        return set(result.scalars().all())

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID with items."""
        result = await self._io(
            self.db.execute(
                select(Order)
                .where(Order.id == order_id)
                .options(selectinload(Order.items))
                .execution_options(populate_existing=True)
            ),
            "load order",
        )
        return result.scalar_one_or_none()

    async def require_order(self, order_id: int) -> Order:
        order = await self.get_order_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def list_orders(self, user_id: Optional[str] = None, is_staff: bool = False) -> List[Order]:
        """List orders newest first; non-staff callers only see their own."""
        query = select(Order)
        if not is_staff:
            query = query.where(Order.user_id == user_id)
        query = query.order_by(Order.placed_at.desc(), Order.id.desc())

        result = await self._io(self.db.execute(query), "load orders")
        return list(result.scalars().all())

    async def list_order_items(self, order_id: int) -> List[OrderItem]:
        """Get the lines of an order."""
        result = await self._io(
            self.db.execute(
                select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
            ),
            "load order items",
        )
        return list(result.scalars().all())

    async def update_status(self, order_id: int, status: str) -> Order:
        """Move an order along the status pipeline."""
        order = await self.require_order(order_id)
        previous = order.status
        requested = validate_transition(previous, status)

        order = await self._write_if(
            order_id,
            Order.status == previous,
            "update order status",
            status=requested.value,
        )
        if order is None:
            current = await self.require_order(order_id)
            validate_transition(current.status, requested)
            raise InvalidTransition(
                current.status,
                requested.value,
                f"Order {order_id} changed to {current.status} while updating",
            )

        logger.info(f"[ORDERS] Order {order_id} status: {previous} -> {requested.value}")
        return order

    async def verify_otp(self, order_id: int, otp: str) -> Order:
        """
        Confirm collection of a ready order.

        The write only lands while the order is still ready with the same OTP, so
        a concurrent cancel or reset wins over a late verification.

        Raises:
            TerminalOrder: order already delivered or cancelled
            ValidationError: OTP is not 6 digits
            InvalidTransition: order is not ready yet
            InvalidOTP: OTP does not match
        """
        order = await self.require_order(order_id)
        self._check_collectable(order)
        supplied = check_otp_format(otp)
        if order.status != OrderStatus.READY.value:
            raise InvalidTransition(
                order.status,
                OrderStatus.DELIVERED.value,
                f"Order is {order.status}, only ready orders can be collected",
            )
        if not otp_matches(order.otp, supplied):
            logger.warning(f"[ORDERS] Invalid OTP submitted for order {order_id}")
            raise InvalidOTP("Invalid OTP")

        verified = await self._write_if(
            order_id,
            (Order.status == OrderStatus.READY.value)
            & (Order.otp == order.otp)
            & Order.otp_verified.is_(False),
            "verify order OTP",
            status=OrderStatus.DELIVERED.value,
            otp_verified=True,
        )
        if verified is None:
            current = await self.require_order(order_id)
            self._check_collectable(current)
            if current.status != OrderStatus.READY.value:
                raise InvalidTransition(current.status, OrderStatus.DELIVERED.value)
            logger.warning(f"[ORDERS] OTP of order {order_id} was reset during verification")
            raise InvalidOTP("Invalid OTP")

        logger.info(f"[ORDERS] Order {order_id} collected, OTP verified")
        return verified

    async def reset_otp(self, order_id: int) -> Order:
        """Issue a fresh OTP without touching the status."""
        order = await self.require_order(order_id)
        if is_terminal(order.status):
            raise TerminalOrder(order.status, f"Cannot reset OTP of a {order.status} order")

        reset = await self._write_if(
            order_id,
            Order.status.in_([s.value for s in ACTIVE_STATUSES]),
            "reset order OTP",
            otp=await self._fresh_otp(),
            otp_verified=False,
        )
        if reset is None:
            current = await self.require_order(order_id)
            raise TerminalOrder(current.status, f"Cannot reset OTP of a {current.status} order")

        logger.info(f"[ORDERS] OTP reset for order {order_id}")
        return reset

    async def reset_latest_otp_for_user(self, user_id: str) -> Order:
        """Reset the OTP of the user's most recent active order."""
        result = await self._io(
            self.db.execute(
                select(Order.id)
                .where(
                    Order.user_id == user_id,
                    Order.status.in_([s.value for s in ACTIVE_STATUSES]),
                )
                .order_by(Order.placed_at.desc(), Order.id.desc())
                .limit(1)
            ),
            "load latest active order",
        )
        order_id = result.scalar_one_or_none()
        if order_id is None:
            raise NotFoundError(f"No active orders found for user {user_id}")
        return await self.reset_otp(order_id)

    @staticmethod
    def _check_collectable(order: Order) -> None:
        if is_terminal(order.status):
            raise TerminalOrder(order.status)

    async def _write_if(self, order_id: int, condition, operation: str, **values) -> Optional[Order]:
        """
        Update the order only while ``condition`` still holds in the database.

        Returns the reloaded order, or None when another writer changed the row
        first. Nothing is written in that case.
        """
        values["updated_at"] = datetime.utcnow()
        result = await self._io(
            self.db.execute(
                update(Order)
                .where(Order.id == order_id, condition)
                .values(**values)
                .execution_options(synchronize_session=False)
            ),
            operation,
        )
        if result.rowcount == 0:
            await self._io(self.db.rollback(), operation)
            logger.warning(f"[ORDERS] {operation} for order {order_id} lost to a concurrent change")
            return None
        await self._io(self.db.commit(), operation)
        return await self.require_order(order_id)
