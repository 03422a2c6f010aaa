"""
Order Models - committed sales and their line items.

Orders and their items are written once, at checkout, and never edited.
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from inventory.models import InventoryItem


class Order(models.Model):
    """
    Order entity representing one committed sale.
    """
    customer_name = models.CharField(
        max_length=200,
        blank=True,
        default='',
        help_text="Optional customer name"
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Sum of line subtotals at checkout"
    )
    payment_method = models.CharField(
        max_length=50,
        blank=True,
        default='',
        help_text="Free-text payment label, normalized when aggregated"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        help_text="Operator who rang up the sale"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'orders'
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.id} - {self.total_amount} ({self.payment_method or 'unknown'})"

    @property
    def item_count(self) -> int:
        return self.items.count()


class OrderItem(models.Model):
    """
    OrderItem entity representing one cart line at the time of sale.

    The inventory reference carries no database constraint so the line
    keeps its inventory_id after the item is deleted from stock.
    """
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Parent order"
    )
    inventory = models.ForeignKey(
        InventoryItem,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='order_items',
        help_text="Sold inventory item"
    )
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Units sold"
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price at time of sale"
    )
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity x price as captured in the cart"
    )

    class Meta:
        db_table = 'order_items'
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x item #{self.inventory_id} @ {self.price}"
