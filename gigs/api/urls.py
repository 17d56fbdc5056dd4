from django.urls import path
from .views import (
    GigImageDeleteAPIView,
    GigImageUploadAPIView,
    GigListCreateAPIView,
    GigPrimaryImageAPIView,
    GigRetrieveUpdateDestroyAPIView,
    GigStatusAPIView,
    MyGigListAPIView,
)

urlpatterns = [
    path("gigs/", GigListCreateAPIView.as_view(), name="gig-list"),
    path("gigs/mine/", MyGigListAPIView.as_view(), name="gig-mine"),
    path("gigs/<int:pk>/", GigRetrieveUpdateDestroyAPIView.as_view(), name="gig-detail"),
    path("gigs/<int:pk>/status/", GigStatusAPIView.as_view(), name="gig-status"),
    path("gigs/<int:pk>/images/", GigImageUploadAPIView.as_view(), name="gig-images"),
    path("gigs/<int:pk>/images/primary/", GigPrimaryImageAPIView.as_view(), name="gig-image-primary"),
    path("gigs/<int:pk>/images/<int:image_id>/", GigImageDeleteAPIView.as_view(), name="gig-image-delete"),
]
