from django.urls import path
from .views import CartCollectionView, CartDetailView
from .views import OrderCollectionView, OrderDetailView, OrderStatusView
app_name = "orders"

urlpatterns = [
    path("carts/", CartCollectionView.as_view(), name="carts-collection"),  # GET list / POST create
    path("carts/<int:cart_id>/", CartDetailView.as_view(), name="carts-detail"),
    path("orders/", OrderCollectionView.as_view(), name="orders-collection"),  # GET list / POST create
    path("orders/<int:order_id>/", OrderDetailView.as_view(), name="orders-detail"),
    path("orders/<int:order_id>/status/", OrderStatusView.as_view(), name="orders-status"),
]
