"""Order status lifecycle."""
import logging
from enum import Enum
from typing import Dict, FrozenSet, Union

from canteen.core.errors import InvalidTransition, TerminalOrder

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    """Order statuses in pipeline order."""

    PLACED = "placed"  # Initial status at checkout
    PROCESSING = "processing"  # Kitchen has picked it up
    READY = "ready"  # Waiting at the counter
    DELIVERED = "delivered"  # Collected, terminal
    CANCELLED = "cancelled"  # Terminal

    def __str__(self) -> str:
        return self.value


TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.PROCESSING, OrderStatus.READY})


def is_terminal(status: Union[OrderStatus, str]) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def can_transition(current: Union[OrderStatus, str], requested: Union[OrderStatus, str]) -> bool:
    """Check a status change against the transition table."""
    return OrderStatus(requested) in TRANSITIONS[OrderStatus(current)]


def validate_transition(
    current: Union[OrderStatus, str], requested: Union[OrderStatus, str]
) -> OrderStatus:
    """
    Validate a status change and return the requested status.

    Raises:
        TerminalOrder: current status is delivered or cancelled
        InvalidTransition: requested status is not reachable from current
    """
    current = OrderStatus(current)
    requested = OrderStatus(requested)

    if current in TERMINAL_STATUSES:
        raise TerminalOrder(current.value)
    if requested not in TRANSITIONS[current]:
        logger.warning(
            f"[LIFECYCLE] Rejected transition: {current.value} -> {requested.value}"
        )
        raise InvalidTransition(current.value, requested.value)
    return requested
