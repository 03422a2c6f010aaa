"""
Order Service Layer - Checkout commit logic.

A commit writes the order, its items and the stock decrements as one unit:
1. Refuse lines with a non-positive quantity before any write
2. Create the order with the cart total
3. Bulk create one order item per cart line
4. Decrement each item with a conditional update (quantity >= requested)
5. If ANY decrement finds too little stock: roll back everything
6. On success: clear the cart, queue the low-stock check
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial
from typing import Optional

from django.db import DatabaseError, models, transaction
from django.db.models import F
from django.utils import timezone

from core.errors import describe_store_error
from inventory.models import InventoryItem
from .cart import Cart
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = 'cash'

# A commit flagged in a session for longer than this is treated as abandoned
CHECKOUT_STALE_AFTER = timedelta(minutes=5)


class CheckoutError(Exception):
    """Raised when a cart cannot be committed."""
    pass


class InsufficientStockError(CheckoutError):
    """Raised when there's not enough stock left for a cart line."""
    def __init__(self, item_id: int, name: str, requested: int, available: int):
        self.item_id = item_id
        self.name = name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {name}: "
            f"requested {requested}, available {available}"
        )


class CheckoutInProgressError(CheckoutError):
    """Raised when a commit is requested while another one is in flight."""
    def __init__(self):
        super().__init__("A checkout is already in progress")


class CheckoutState(models.TextChoices):
    BUILDING = 'building', 'Building'
    COMMITTING = 'committing', 'Committing'
    COMMITTED = 'committed', 'Committed'
    FAILED = 'failed', 'Failed'


def _queue_low_stock_check(order_id: int) -> None:
    try:
        from .tasks import notify_low_stock
        notify_low_stock.delay(order_id)
        logger.info(f"Triggered low-stock check for order #{order_id}")
    except Exception as e:
        # Don't fail the sale if task queuing fails
        logger.error(f"Failed to queue low-stock check: {e}")


def commit_order(
    cart: Cart,
    customer_name: str = '',
    payment_method: str = DEFAULT_PAYMENT_METHOD,
    actor=None,
) -> Optional[Order]:
    """
    Commit the cart as an order.

    Args:
        cart: The sale being rung up; cleared on success
        customer_name: Optional customer name
        payment_method: Free-text payment label
        actor: User recording the sale

    Returns:
        The created Order, or None when the cart is empty

    Raises:
        CheckoutError: If a line has a non-positive quantity or its item is gone
        InsufficientStockError: If stock ran out since the item was added
    """
    if cart.is_empty:
        logger.info("Checkout skipped: cart is empty")
        return None

    lines = cart.lines
    for line in lines:
        if line.cart_quantity < 1:
            raise CheckoutError(
                f"Quantity for {line.name} must be at least 1 (got {line.cart_quantity})"
            )

    with transaction.atomic():
        order = Order.objects.create(
            customer_name=(customer_name or '').strip(),
            total_amount=cart.total,
            payment_method=payment_method,
            created_by=actor,
        )

        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                inventory_id=line.item_id,
                quantity=line.cart_quantity,
                price=line.price,
                subtotal=line.subtotal,
            )
            for line in lines
        ])

        # Update rows in item id order to prevent deadlocks
        now = timezone.now()
        for line in sorted(lines, key=lambda l: l.item_id):
            updated = InventoryItem.objects.filter(
                pk=line.item_id,
                quantity__gte=line.cart_quantity
            ).update(
                quantity=F('quantity') - line.cart_quantity,
                updated_at=now
            )
            if updated:
                continue

            available = InventoryItem.objects.filter(pk=line.item_id).values_list(
                'quantity', flat=True
            ).first()
            if available is None:
                raise CheckoutError(f"{line.name} is no longer in inventory")
            logger.warning(
                f"Checkout rejected: {line.name} requested {line.cart_quantity}, available {available}"
            )
            raise InsufficientStockError(line.item_id, line.name, line.cart_quantity, available)

        transaction.on_commit(partial(_queue_low_stock_check, order.id))

    logger.info(
        f"Order #{order.id} committed: {len(lines)} lines, "
        f"{cart.item_count} units, total {order.total_amount}"
    )
    cart.clear()
    return order


@dataclass
class CheckoutResult:
    state: str
    order: Optional[Order] = None
    error: str = ''

    @property
    def committed(self) -> bool:
        return self.state == CheckoutState.COMMITTED


class Checkout:
    """
    One sale moving through building -> committing -> committed | failed,
    then back to building via reset().

    Committing is only entered from a non-empty cart. A failed commit leaves
    the cart as it was; a committed one leaves it empty for the next sale.
    """

    def __init__(self, cart: Cart, state: str = CheckoutState.BUILDING,
                 started_at: Optional[datetime] = None):
        self.cart = cart
        self.state = state
        self.started_at = started_at

    @property
    def in_progress(self) -> bool:
        if self.state != CheckoutState.COMMITTING:
            return False
        if self.started_at is None:
            return True
        return timezone.now() - self.started_at < CHECKOUT_STALE_AFTER

    def begin(self) -> bool:
        """Enter committing. Returns False when there is nothing to commit."""
        if self.in_progress:
            raise CheckoutInProgressError()
        if self.cart.is_empty:
            self.state = CheckoutState.BUILDING
            return False
        self.state = CheckoutState.COMMITTING
        self.started_at = timezone.now()
        return True

    def commit(self, customer_name: str = '', payment_method: str = DEFAULT_PAYMENT_METHOD,
               actor=None) -> CheckoutResult:
        """
        Commit the cart, converting failures into a FAILED result.

        Call begin() first; an empty cart yields a BUILDING result with no order.
        """
        if self.state != CheckoutState.COMMITTING and not self.begin():
            return CheckoutResult(state=CheckoutState.BUILDING)

        try:
            order = commit_order(self.cart, customer_name, payment_method, actor)
        except CheckoutError as e:
            return self._fail(str(e))
        except DatabaseError as e:
            logger.exception(f"Store error during checkout: {e}")
            return self._fail(describe_store_error(e))

        self.started_at = None
        if order is None:
            self.state = CheckoutState.BUILDING
            return CheckoutResult(state=CheckoutState.BUILDING)
        self.state = CheckoutState.COMMITTED
        return CheckoutResult(state=CheckoutState.COMMITTED, order=order)

    def reset(self) -> None:
        """Return to building, ready for the next sale."""
        self.state = CheckoutState.BUILDING
        self.started_at = None

    def _fail(self, message: str) -> CheckoutResult:
        self.state = CheckoutState.FAILED
        self.started_at = None
        return CheckoutResult(state=CheckoutState.FAILED, error=message)
