"""
Django Admin configuration for order models.

Orders are written by checkout only, so the admin is read-only.
"""
from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['inventory_id', 'quantity', 'price', 'subtotal']
    fields = ['inventory_id', 'quantity', 'price', 'subtotal']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_name', 'payment_method', 'total_amount', 'item_count', 'created_by', 'created_at']
    list_filter = ['payment_method', 'created_at']
    search_fields = ['id', 'customer_name']
    ordering = ['-created_at']
    readonly_fields = ['customer_name', 'total_amount', 'payment_method', 'created_by', 'created_at']
    inlines = [OrderItemInline]

    def has_add_permission(self, request):
        return False


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'inventory_id', 'quantity', 'price', 'subtotal']
    search_fields = ['order__id']
    ordering = ['-id']
    raw_id_fields = ['order', 'inventory']

    def has_add_permission(self, request):
        return False
