"""
Point of Sale and Order API Views.

Implements:
- GET/DELETE /pos/cart/ - Current cart, or clear it
- POST /pos/cart/items/ - Add one unit of an item
- PATCH/DELETE /pos/cart/items/{id}/ - Change a line's quantity, or drop it
- POST /pos/checkout/ - Commit the cart as an order
- GET /orders/ - List orders
- GET /orders/{id}/ - Order detail with items
"""
import logging

from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Capability
from accounts.permissions import HasCapability
from core.errors import error_response
from inventory.models import InventoryItem
from inventory.serializers import AvailableItemSerializer
from .models import Order
from .serializers import (
    CartAddSerializer,
    CartQuantitySerializer,
    CartSerializer,
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
)
from .services import CheckoutInProgressError, CheckoutState
from .session import checkout_lock, load_cart, load_checkout, save_cart, save_checkout

logger = logging.getLogger(__name__)


class PosView(APIView):
    permission_classes = [HasCapability]
    required_capability = Capability.PROCESS_SALES


class CartView(PosView):
    """
    GET: Current cart with total and item count
    DELETE: Empty the cart
    """

    def get(self, request):
        return Response(CartSerializer(load_cart(request)).data)

    def delete(self, request):
        cart = load_cart(request)
        cart.clear()
        save_cart(request, cart)
        return Response(CartSerializer(cart).data)


class CartItemsView(PosView):
    """
    POST: Add one unit of an inventory item.

    Request Body:
    {"inventory_id": 12}

    Adding an item already at its stock ceiling leaves the cart unchanged.
    """

    def post(self, request):
        serializer = CartAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = InventoryItem.objects.available().filter(
            pk=serializer.validated_data['inventory_id']
        ).first()
        if item is None:
            return error_response('Not Found', 'Item is not available', status.HTTP_404_NOT_FOUND)

        cart = load_cart(request)
        cart.add(item)
        save_cart(request, cart)
        return Response(CartSerializer(cart).data)


class CartItemDetailView(PosView):
    """
    PATCH: Set a line's quantity, capped at available stock
    DELETE: Remove the line
    """

    def patch(self, request, item_id):
        serializer = CartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = load_cart(request)
        if cart.update_quantity(item_id, serializer.validated_data['quantity']) is None:
            return error_response('Not Found', 'Item is not in the cart', status.HTTP_404_NOT_FOUND)
        save_cart(request, cart)
        return Response(CartSerializer(cart).data)

    def delete(self, request, item_id):
        cart = load_cart(request)
        cart.remove(item_id)
        save_cart(request, cart)
        return Response(CartSerializer(cart).data)


class CheckoutView(PosView):
    """
    POST: Commit the cart as an order.

    Returns:
        - 201: Order committed; cart emptied, refreshed POS item list included
        - 200: Cart was empty, nothing committed
        - 400: Commit failed; cart left as it was
        - 409: Another checkout from this session is still in flight

    The in-flight check is a Redis lock per session; without Redis it
    falls back to the state stored in the session.
    """

    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with checkout_lock(request) as acquired:
            if not acquired:
                return error_response(
                    'Checkout In Progress', str(CheckoutInProgressError()), status.HTTP_409_CONFLICT
                )
            return self._commit(request, serializer.validated_data)

    def _commit(self, request, data):
        checkout = load_checkout(request)
        try:
            started = checkout.begin()
        except CheckoutInProgressError as e:
            return error_response('Checkout In Progress', str(e), status.HTTP_409_CONFLICT)

        if not started:
            save_checkout(request, checkout)
            return Response({
                'order': None,
                'detail': 'Cart is empty; nothing to commit',
                'cart': CartSerializer(checkout.cart).data,
            })

        save_checkout(request, checkout, flush=True)
        try:
            result = checkout.commit(
                customer_name=data['customer_name'],
                payment_method=data['payment_method'],
                actor=request.user,
            )
        except Exception as e:
            logger.exception(f"Unexpected error during checkout: {e}")
            checkout.state = CheckoutState.FAILED
            checkout.started_at = None
            save_checkout(request, checkout)
            return error_response(
                'Server Error', 'An unexpected error occurred', status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        if not result.committed:
            save_checkout(request, checkout)
            logger.warning(f"Checkout failed for {request.user}: {result.error}")
            return error_response(
                'Checkout Failed', result.error, status.HTTP_400_BAD_REQUEST
            )

        available = InventoryItem.objects.available().order_by('name')
        body = {
            'order': OrderSerializer(result.order).data,
            'cart': CartSerializer(checkout.cart).data,
            'inventory': AvailableItemSerializer(available, many=True).data,
        }
        checkout.reset()
        save_checkout(request, checkout)
        return Response(body, status=status.HTTP_201_CREATED)


class OrderListView(generics.ListAPIView):
    """
    GET: List orders, newest first.

    Query Parameters:
        - payment_method: Case-insensitive match on the payment label
    """
    serializer_class = OrderListSerializer
    permission_classes = [HasCapability]
    required_capability = Capability.VIEW_ORDERS

    def get_queryset(self):
        queryset = Order.objects.prefetch_related('items')

        payment_method = self.request.query_params.get('payment_method', '').strip()
        if payment_method:
            queryset = queryset.filter(payment_method__iexact=payment_method)

        return queryset.order_by('-created_at')


class OrderDetailView(generics.RetrieveAPIView):
    """
    GET: Retrieve order details with all items.
    """
    serializer_class = OrderSerializer
    permission_classes = [HasCapability]
    required_capability = Capability.VIEW_ORDERS

    def get_queryset(self):
        return Order.objects.prefetch_related('items')
