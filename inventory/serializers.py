"""
Serializers for inventory models.
Provides data validation and JSON conversion for API endpoints.
"""
from rest_framework import serializers
from .models import Category, InventoryItem


class CategorySerializer(serializers.ModelSerializer):
    """Serializer for Category model."""
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'item_count', 'created_at']
        read_only_fields = fields

    def get_item_count(self, obj):
        return obj.items.count()


class CategoryMinimalSerializer(serializers.ModelSerializer):
    """Minimal serializer for nested category representation."""
    class Meta:
        model = Category
        fields = ['id', 'name']


class InventoryItemSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and editing inventory items.

    Selling below cost is allowed only when the request sets
    confirm_below_cost.
    """
    category = CategoryMinimalSerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        source='category',
        write_only=True,
        error_messages={
            'required': 'Please select a category',
            'null': 'Please select a category',
            'does_not_exist': 'Please select a category',
            'incorrect_type': 'Please select a category',
        }
    )
    confirm_below_cost = serializers.BooleanField(write_only=True, required=False, default=False)
    is_out_of_stock = serializers.BooleanField(read_only=True)
    needs_restock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            'id', 'name', 'brand', 'category', 'category_id', 'size',
            'price', 'cost', 'quantity', 'min_stock',
            'is_out_of_stock', 'needs_restock', 'confirm_below_cost',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_name(self, value):
        return value.strip()

    def validate_brand(self, value):
        return value.strip()

    def validate_size(self, value):
        return value.strip()

    def validate(self, attrs):
        confirmed = attrs.pop('confirm_below_cost', False)
        price = attrs.get('price', getattr(self.instance, 'price', None))
        cost = attrs.get('cost', getattr(self.instance, 'cost', None))
        if price is not None and cost is not None and price < cost and not confirmed:
            raise serializers.ValidationError(
                "Selling price is less than cost price. Set confirm_below_cost to continue."
            )
        return attrs


class AvailableItemSerializer(serializers.ModelSerializer):
    """Item as listed on the POS screen."""
    class Meta:
        model = InventoryItem
        fields = ['id', 'name', 'brand', 'size', 'category_id', 'price', 'quantity']
