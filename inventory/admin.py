"""
Django Admin configuration for inventory models.
"""
from django.contrib import admin
from .models import Category, InventoryItem


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'item_count', 'created_at']
    search_fields = ['name']
    ordering = ['name']

    def item_count(self, obj):
        return obj.items.count()
    item_count.short_description = 'Items'


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'brand', 'size', 'category', 'price', 'quantity', 'needs_restock', 'updated_at']
    list_filter = ['category', 'updated_at']
    search_fields = ['name', 'brand']
    ordering = ['name']
    raw_id_fields = ['category']

    def needs_restock(self, obj):
        return obj.needs_restock
    needs_restock.boolean = True
    needs_restock.short_description = 'Restock'
