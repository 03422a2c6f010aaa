"""
Inventory Models - Core stock entities for the point of sale.

Models:
    - Category: Grouping for inventory items
    - InventoryItem: A sellable item with price, cost and stock on hand
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Category(models.Model):
    """
    Item category, managed from the Django admin.
    """
    name = models.CharField(
        max_length=100,
        unique=True,
        help_text="Unique category name"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="Optional category description"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'categories'
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'
        ordering = ['name']

    def __str__(self):
        return self.name


class InventoryItemQuerySet(models.QuerySet):

    def available(self):
        """Items that can be sold right now."""
        return self.filter(quantity__gt=0)

    def search(self, term: str):
        """Case-insensitive match on name or brand."""
        term = (term or '').strip()
        if not term:
            return self
        return self.filter(Q(name__icontains=term) | Q(brand__icontains=term))

    def low_stock(self, threshold: int):
        """Items strictly below threshold, lowest stock first."""
        return self.filter(quantity__lt=threshold).order_by('quantity', 'name')


class InventoryItem(models.Model):
    """
    InventoryItem entity holding the stock on hand.

    Quantity is decremented by checkout and never goes negative; the
    database enforces it with a check constraint.
    """
    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Item name for display and search"
    )
    brand = models.CharField(
        max_length=100,
        blank=True,
        default='',
        help_text="Brand, searchable from the POS"
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name='items',
        help_text="Item category"
    )
    size = models.CharField(
        max_length=50,
        blank=True,
        default='',
        help_text="Size label, e.g. M or 500ml"
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Selling price"
    )
    cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Purchase cost"
    )
    quantity = models.PositiveIntegerField(
        default=0,
        help_text="Units on hand"
    )
    min_stock = models.PositiveIntegerField(
        default=5,
        help_text="Restock threshold for this item"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InventoryItemQuerySet.as_manager()

    class Meta:
        db_table = 'inventory'
        verbose_name = 'Inventory Item'
        verbose_name_plural = 'Inventory Items'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=0), name='inventory_quantity_non_negative'),
            models.CheckConstraint(condition=Q(price__gte=0), name='inventory_price_non_negative'),
            models.CheckConstraint(condition=Q(cost__gte=0), name='inventory_cost_non_negative'),
        ]
        indexes = [
            models.Index(fields=['quantity'], name='inventory_quantity_idx'),
            models.Index(fields=['category', 'name'], name='inventory_category_name_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.brand}): {self.quantity} units"

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity == 0

    @property
    def needs_restock(self) -> bool:
        """Below the item's own min_stock threshold."""
        return self.quantity < self.min_stock
