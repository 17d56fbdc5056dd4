from django.urls import path
from .views import (
    GigReviewListAPIView,
    ReviewCreateAPIView,
    ReviewDetailAPIView,
    ReviewReportAPIView,
    UserReviewListAPIView,
)

urlpatterns = [
    path("reviews/", ReviewCreateAPIView.as_view(), name="review-create"),
    path("reviews/gig/<int:gig_id>/", GigReviewListAPIView.as_view(), name="gig-reviews"),
    path("reviews/user/<int:user_id>/", UserReviewListAPIView.as_view(), name="user-reviews"),
    path("reviews/<int:pk>/", ReviewDetailAPIView.as_view(), name="review-detail"),
    path("reviews/<int:pk>/report/", ReviewReportAPIView.as_view(), name="review-report"),
]
