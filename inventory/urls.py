"""
URL routing for inventory API endpoints.
"""
from django.urls import path
from . import views

app_name = 'inventory'

urlpatterns = [
    path('categories/', views.CategoryListView.as_view(), name='category-list'),
    path('inventory/', views.InventoryListCreateView.as_view(), name='inventory-list'),
    path('inventory/available/', views.AvailableInventoryView.as_view(), name='inventory-available'),
    path('inventory/<int:pk>/', views.InventoryDetailView.as_view(), name='inventory-detail'),
]
