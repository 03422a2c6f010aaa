"""
Serializers for cart, checkout and order models.
"""
from rest_framework import serializers
from .models import Order, OrderItem
from .services import DEFAULT_PAYMENT_METHOD


class CartLineSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    name = serializers.CharField()
    brand = serializers.CharField()
    size = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock = serializers.IntegerField()
    cart_quantity = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)


class CartSerializer(serializers.Serializer):
    """Serializer for a Cart with its derived totals."""
    lines = CartLineSerializer(many=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_count = serializers.IntegerField()


class CartAddSerializer(serializers.Serializer):
    inventory_id = serializers.IntegerField(min_value=1)


class CartQuantitySerializer(serializers.Serializer):
    # Only capped against stock; see Cart.update_quantity
    quantity = serializers.IntegerField()


class CheckoutSerializer(serializers.Serializer):
    """
    Serializer for POST /pos/checkout/

    Request format:
    {
        "customer_name": "Asha",
        "payment_method": "upi"
    }
    """
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    payment_method = serializers.CharField(
        max_length=50,
        required=False,
        allow_blank=True,
        default=DEFAULT_PAYMENT_METHOD
    )


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'inventory_id', 'quantity', 'price', 'subtotal']


class OrderSerializer(serializers.ModelSerializer):
    """
    Serializer for Order model with nested items.
    """
    items = OrderItemSerializer(many=True, read_only=True)
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer_name', 'total_amount', 'payment_method',
            'created_by', 'items', 'created_at'
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """
    Optimized serializer for listing orders.
    """
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'customer_name', 'total_amount', 'payment_method', 'item_count', 'created_at']

    def get_item_count(self, obj):
        # Use prefetched items count if available
        if hasattr(obj, '_prefetched_objects_cache') and 'items' in obj._prefetched_objects_cache:
            return len(obj.items.all())
        return obj.items.count()
