"""
Celery tasks for order processing.

Tasks:
    - notify_low_stock: Restock alert for items a committed order left below min_stock
    - generate_daily_sales_report: Yesterday's revenue per payment method
"""
import logging
from datetime import timedelta
from decimal import Decimal

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def notify_low_stock(self, order_id: int):
    """
    Check the items sold in an order against their own min_stock.

    Args:
        order_id: ID of the committed order

    Returns:
        Dict with the items that need restocking
    """
    from inventory.models import InventoryItem
    from orders.models import Order

    try:
        order = Order.objects.prefetch_related('items').get(id=order_id)
    except Order.DoesNotExist:
        logger.error(f"Order #{order_id} not found for low-stock check")
        return {'status': 'error', 'message': f'Order {order_id} not found'}

    inventory_ids = [item.inventory_id for item in order.items.all()]
    restock = [
        item for item in InventoryItem.objects.filter(id__in=inventory_ids).order_by('quantity')
        if item.needs_restock
    ]

    for item in restock:
        logger.warning(
            f"[RESTOCK] {item.name} ({item.size or 'one size'}): "
            f"{item.quantity} left, minimum {item.min_stock}"
        )

    return {
        'status': 'success',
        'order_id': order.id,
        'restock': [{'id': item.id, 'name': item.name, 'quantity': item.quantity} for item in restock],
    }


@shared_task
def generate_daily_sales_report():
    """
    Summarise yesterday's sales.

    Scheduled via Celery Beat (see config/celery.py).
    """
    from dashboard.services import sales_by_payment_method
    from orders.models import Order

    yesterday = timezone.localdate() - timedelta(days=1)
    orders = list(
        Order.objects.filter(created_at__date=yesterday).values('total_amount', 'payment_method')
    )
    total = sum((o['total_amount'] for o in orders), Decimal('0.00'))
    by_method = sales_by_payment_method(orders)

    lines = [f"    {entry.method}: {entry.amount}" for entry in by_method]
    report = f"""
    ===============================================
    DAILY SALES REPORT - {yesterday}
    ===============================================
    Orders: {len(orders)}
    Revenue: {total}
{chr(10).join(lines)}
    ===============================================
    """

    logger.info(report)

    return {
        'date': yesterday.isoformat(),
        'order_count': len(orders),
        'total': str(total),
        'by_payment_method': {entry.method: str(entry.amount) for entry in by_method},
    }
