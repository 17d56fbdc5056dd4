from django.urls import path
from .views import (
    AdminGigDetailAPIView,
    AdminGigListAPIView,
    AdminGigStatusAPIView,
    AdminOrderDetailAPIView,
    AdminOrderListAPIView,
    AdminOrderStatusAPIView,
    AdminReviewApproveAPIView,
    AdminReviewDetailAPIView,
    AdminReviewListAPIView,
    AdminReviewRejectAPIView,
    AdminReviewResponseAPIView,
    AdminUserDetailAPIView,
    AdminUserListAPIView,
    AnalyticsAPIView,
    DashboardAPIView,
)

urlpatterns = [
    path("dashboard/", DashboardAPIView.as_view(), name="admin-dashboard"),
    path("analytics/", AnalyticsAPIView.as_view(), name="admin-analytics"),
    path("users/", AdminUserListAPIView.as_view(), name="admin-users"),
    path("users/<int:pk>/", AdminUserDetailAPIView.as_view(), name="admin-user-detail"),
    path("gigs/", AdminGigListAPIView.as_view(), name="admin-gigs"),
    path("gigs/<int:pk>/", AdminGigDetailAPIView.as_view(), name="admin-gig-detail"),
    path("gigs/<int:pk>/status/", AdminGigStatusAPIView.as_view(), name="admin-gig-status"),
    path("orders/", AdminOrderListAPIView.as_view(), name="admin-orders"),
    path("orders/<int:pk>/", AdminOrderDetailAPIView.as_view(), name="admin-order-detail"),
    path("orders/<int:pk>/status/", AdminOrderStatusAPIView.as_view(), name="admin-order-status"),
    path("reviews/", AdminReviewListAPIView.as_view(), name="admin-reviews"),
    path("reviews/<int:pk>/", AdminReviewDetailAPIView.as_view(), name="admin-review-detail"),
    path("reviews/<int:pk>/approve/", AdminReviewApproveAPIView.as_view(), name="admin-review-approve"),
    path("reviews/<int:pk>/reject/", AdminReviewRejectAPIView.as_view(), name="admin-review-reject"),
    path("reviews/<int:pk>/response/", AdminReviewResponseAPIView.as_view(), name="admin-review-response"),
]
