"""
Inventory API Views.

Implements:
- Category listing
- Inventory CRUD with search and category filter
- Available-item listing for the POS screen
"""
import logging

from django.db.models import ProtectedError
from rest_framework import generics, status
from rest_framework.response import Response

from accounts.models import Capability
from accounts.permissions import HasCapability
from core.errors import describe_store_error, error_response
from .models import Category, InventoryItem
from .serializers import (
    AvailableItemSerializer,
    CategorySerializer,
    InventoryItemSerializer,
)

logger = logging.getLogger(__name__)


class CategoryListView(generics.ListAPIView):
    """
    GET: List all categories
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [HasCapability]
    required_capability = Capability.VIEW_INVENTORY


class InventoryListCreateView(generics.ListCreateAPIView):
    """
    GET: List inventory items
    POST: Create an inventory item (admin)

    Query Parameters (GET):
        - q: Match on name or brand
        - category_id: Filter by category
    """
    serializer_class = InventoryItemSerializer
    permission_classes = [HasCapability]
    required_capabilities = {
        'GET': Capability.VIEW_INVENTORY,
        'POST': Capability.MANAGE_INVENTORY,
    }

    def get_queryset(self):
        queryset = InventoryItem.objects.select_related('category').search(
            self.request.query_params.get('q', '')
        )

        category_id = self.request.query_params.get('category_id')
        if category_id and category_id != 'all':
            try:
                queryset = queryset.filter(category_id=int(category_id))
            except ValueError:
                pass

        return queryset.order_by('name')

    def perform_create(self, serializer):
        item = serializer.save()
        logger.info(f"Created inventory item #{item.id} {item.name} ({item.quantity} units)")


class InventoryDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET: Retrieve an inventory item
    PUT/PATCH: Update an inventory item (admin)
    DELETE: Delete an inventory item (admin)
    """
    serializer_class = InventoryItemSerializer
    permission_classes = [HasCapability]
    required_capabilities = {
        'GET': Capability.VIEW_INVENTORY,
        '*': Capability.MANAGE_INVENTORY,
    }

    def get_queryset(self):
        return InventoryItem.objects.select_related('category')

    def perform_update(self, serializer):
        item = serializer.save()
        logger.info(f"Updated inventory item #{item.id}: {item.quantity} units @ {item.price}")

    def destroy(self, request, *args, **kwargs):
        item = self.get_object()
        try:
            item.delete()
        except ProtectedError as e:
            return error_response('Store Error', describe_store_error(e), status.HTTP_400_BAD_REQUEST)
        logger.info(f"Deleted inventory item #{kwargs.get('pk')}")
        return Response(status=status.HTTP_204_NO_CONTENT)


class AvailableInventoryView(generics.ListAPIView):
    """
    GET: Items with stock on hand, for the POS screen.

    Query Parameters:
        - q: Match on name or brand
    """
    serializer_class = AvailableItemSerializer
    permission_classes = [HasCapability]
    required_capability = Capability.PROCESS_SALES

    def get_queryset(self):
        return InventoryItem.objects.available().search(
            self.request.query_params.get('q', '')
        ).order_by('name')
