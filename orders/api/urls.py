from django.urls import path
from .views import (
    CompletedOrderCountAPIView,
    OrderCancelAPIView,
    OrderCompleteAPIView,
    OrderCountAPIView,
    OrderDeliveryAPIView,
    OrderDetailAPIView,
    OrderListCreateAPIView,
    OrderMessagesAPIView,
    OrderRevisionAPIView,
    OrderRevisionCompleteAPIView,
    OrderStatusAPIView,
)

urlpatterns = [
    path("orders/", OrderListCreateAPIView.as_view(), name="order-list"),
    path("orders/<int:pk>/", OrderDetailAPIView.as_view(), name="order-detail"),
    path("orders/<int:pk>/status/", OrderStatusAPIView.as_view(), name="order-status"),
    path("orders/<int:pk>/delivery/", OrderDeliveryAPIView.as_view(), name="order-delivery"),
    path("orders/<int:pk>/revision/", OrderRevisionAPIView.as_view(), name="order-revision"),
    path("orders/<int:pk>/revisions/<int:rid>/", OrderRevisionCompleteAPIView.as_view(), name="order-revision-complete"),
    path("orders/<int:pk>/complete/", OrderCompleteAPIView.as_view(), name="order-complete"),
    path("orders/<int:pk>/cancel/", OrderCancelAPIView.as_view(), name="order-cancel"),
    path("orders/<int:pk>/messages/", OrderMessagesAPIView.as_view(), name="order-messages"),
    path("order-count/<int:seller_id>/", OrderCountAPIView.as_view(), name="order-count"),
    path("completed-order-count/<int:seller_id>/", CompletedOrderCountAPIView.as_view(), name="completed-order-count"),
]
