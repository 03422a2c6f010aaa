"""
URL routing for point-of-sale and order API endpoints.
"""
from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('pos/cart/', views.CartView.as_view(), name='cart'),
    path('pos/cart/items/', views.CartItemsView.as_view(), name='cart-items'),
    path('pos/cart/items/<int:item_id>/', views.CartItemDetailView.as_view(), name='cart-item-detail'),
    path('pos/checkout/', views.CheckoutView.as_view(), name='checkout'),
    path('orders/', views.OrderListView.as_view(), name='order-list'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
]
