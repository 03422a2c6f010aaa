"""
Serializers for the sales summary.
"""
from rest_framework import serializers


class TopSellingItemSerializer(serializers.Serializer):
    inventory_id = serializers.IntegerField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()


class PaymentMethodTotalSerializer(serializers.Serializer):
    method = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class LowStockItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()


class SalesSummarySerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    order_count = serializers.IntegerField()
    top_selling_items = TopSellingItemSerializer(many=True)
    sales_by_payment_method = PaymentMethodTotalSerializer(many=True)
    low_stock_items = LowStockItemSerializer(many=True)
