"""
Sales aggregation for the dashboard.

compute_dashboard() reads orders, order items and inventory and derives:
- total revenue and order count
- the five best-selling items by units sold
- revenue per payment method, after normalizing the free-text labels
- items with fewer than LOW_STOCK_THRESHOLD units left

The three reads run concurrently on Django's async ORM. If any of them
fails the whole summary fails; partial results are never returned.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List

from asgiref.sync import async_to_sync
from django.db import DatabaseError
from django.db.models import Sum

from inventory.models import InventoryItem
from orders.models import Order, OrderItem

logger = logging.getLogger(__name__)

# Fixed for the dashboard; each item's own min_stock drives restock alerts only
LOW_STOCK_THRESHOLD = 5
TOP_SELLING_LIMIT = 5
UNKNOWN_PAYMENT_METHOD = 'unknown'


class DashboardError(Exception):
    """Raised when any dashboard read fails."""
    pass


@dataclass
class TopSellingItem:
    inventory_id: int
    name: str
    quantity: int


@dataclass
class PaymentMethodTotal:
    method: str
    amount: Decimal


@dataclass
class LowStockItem:
    id: int
    name: str
    quantity: int


@dataclass
class SalesSummary:
    total: Decimal = Decimal('0.00')
    order_count: int = 0
    top_selling_items: List[TopSellingItem] = field(default_factory=list)
    sales_by_payment_method: List[PaymentMethodTotal] = field(default_factory=list)
    low_stock_items: List[LowStockItem] = field(default_factory=list)


def normalize_payment_method(raw) -> str:
    """
    Collapse spelling variants of a payment label into one bucket.

    " cash", "CASH" and "Cash" all become "Cash"; a blank label becomes
    "Unknown".
    """
    method = (raw or '').strip().lower() or UNKNOWN_PAYMENT_METHOD
    return method[:1].upper() + method[1:]


def sales_by_payment_method(orders: Iterable[dict]) -> List[PaymentMethodTotal]:
    """Sum total_amount per normalized payment method, in first-seen order."""
    totals = {}
    for order in orders:
        method = normalize_payment_method(order['payment_method'])
        totals[method] = totals.get(method, Decimal('0.00')) + order['total_amount']
    return [PaymentMethodTotal(method=m, amount=a) for m, a in totals.items()]


def item_label(inventory_id: int, name=None) -> str:
    return name or f"Item #{inventory_id}"


async def _fetch_orders() -> List[dict]:
    try:
        return [
            row async for row in Order.objects.order_by('id').values('id', 'total_amount', 'payment_method')
        ]
    except DatabaseError as e:
        raise DashboardError(f"Failed to fetch orders: {e}") from e


async def _fetch_top_selling_items() -> List[TopSellingItem]:
    try:
        ranked = [
            row async for row in OrderItem.objects.values('inventory_id')
            .annotate(units_sold=Sum('quantity'))
            .order_by('-units_sold', 'inventory_id')[:TOP_SELLING_LIMIT]
        ]
        # Sold items may have been deleted from inventory since
        names = {
            row['id']: row['name'] async for row in InventoryItem.objects.filter(
                id__in=[r['inventory_id'] for r in ranked]
            ).values('id', 'name')
        }
    except DatabaseError as e:
        raise DashboardError(f"Failed to fetch top selling items: {e}") from e

    return [
        TopSellingItem(
            inventory_id=row['inventory_id'],
            name=item_label(row['inventory_id'], names.get(row['inventory_id'])),
            quantity=row['units_sold'],
        )
        for row in ranked
    ]


async def _fetch_low_stock_items() -> List[LowStockItem]:
    try:
        return [
            LowStockItem(id=row['id'], name=row['name'], quantity=row['quantity'])
            async for row in InventoryItem.objects.low_stock(LOW_STOCK_THRESHOLD).values('id', 'name', 'quantity')
        ]
    except DatabaseError as e:
        raise DashboardError(f"Failed to fetch low stock items: {e}") from e


async def acompute_dashboard() -> SalesSummary:
    orders, top_items, low_stock = await asyncio.gather(
        _fetch_orders(),
        _fetch_top_selling_items(),
        _fetch_low_stock_items(),
    )

    summary = SalesSummary(
        total=sum((o['total_amount'] for o in orders), Decimal('0.00')),
        order_count=len(orders),
        top_selling_items=top_items,
        sales_by_payment_method=sales_by_payment_method(orders),
        low_stock_items=low_stock,
    )
    logger.debug(
        f"Dashboard computed: {summary.order_count} orders, total {summary.total}, "
        f"{len(summary.low_stock_items)} low-stock items"
    )
    return summary


def compute_dashboard() -> SalesSummary:
    """
    Build the sales summary.

    Raises:
        DashboardError: If any of the underlying reads fails
    """
    return async_to_sync(acompute_dashboard)()
