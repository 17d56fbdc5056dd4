from django.urls import path
from .views import ProfileView, FreelancerProfileListView, ClientProfileListView

urlpatterns = [
    path("profile/<int:pk>/", ProfileView.as_view(), name="profile-detail"),
    path("profiles/freelancers/", FreelancerProfileListView.as_view(), name="freelancer-profiles"),
    path("profiles/clients/", ClientProfileListView.as_view(), name="client-profiles"),
]
