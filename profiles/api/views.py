"""Profiles API views.

Provides endpoints to retrieve a single profile (by user id) and to update the
owner's own profile. Also exposes list endpoints for freelancer and client
profiles. Authentication is required for all endpoints; write access is limited
to the profile owner or an admin.
"""

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import generics
from rest_framework.exceptions import PermissionDenied
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from user_auth_app.api.permissions import is_admin
from ..models import Profile
from .permissions import IsProfileOwner
from .serializers import (
    ClientProfileListSerializer,
    FreelancerProfileListSerializer,
    ProfileDetailSerializer,
    ProfilePatchSerializer,
)

logger = logging.getLogger(__name__)


class ProfileView(generics.RetrieveUpdateAPIView):
    """
    API endpoint for retrieving or partially updating a single profile.

    - GET `/api/profile/{pk}/` returns the profile for the given user id (`pk`).
    - PATCH `/api/profile/{pk}/` updates only the fields provided and is restricted
      to the owner of the profile (or an admin).

    Notes:
    - On PATCH by the owner, a missing profile is lazily created with the
      default role.
    - Role and stats are never taken from the payload.
    """

    queryset = Profile.objects.select_related("user")
    serializer_class = ProfileDetailSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = (JSONParser, FormParser, MultiPartParser)
    http_method_names = ["get", "patch", "head", "options"]

    def get_permissions(self):
        """Require ownership for PATCH; otherwise authentication only."""
        if self.request.method == "PATCH":
            return [IsAuthenticated(), IsProfileOwner()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        """Use the patch serializer for PATCH; the detail serializer otherwise."""
        if self.request.method == "PATCH":
            return ProfilePatchSerializer
        return ProfileDetailSerializer

    def get_object(self):
        user_id = int(self.kwargs["pk"])

        if self.request.method == "PATCH":
            if self.request.user.id != user_id and not is_admin(self.request.user):
                raise PermissionDenied("You may only modify your own profile.")
            obj = self.queryset.filter(user_id=user_id).first()
            if obj is None:
                if self.request.user.id != user_id:
                    obj = get_object_or_404(self.queryset, user_id=user_id)
                obj = Profile.objects.create(user=self.request.user)
                logger.info("Created missing profile for user %s", user_id)
            self.check_object_permissions(self.request, obj)
            return obj

        return get_object_or_404(self.queryset, user_id=user_id)


class FreelancerProfileListView(generics.ListAPIView):
    """
    GET `/api/profiles/freelancers/` lists freelancer profiles, best rated first.
    Optional `?search=` matches name, bio or skills.
    """

    serializer_class = FreelancerProfileListSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Profile.objects.select_related("user").filter(
            role=Profile.Role.FREELANCER, is_suspended=False
        )
        term = (self.request.query_params.get("search") or "").strip()
        if term:
            qs = qs.filter(
                Q(user__first_name__icontains=term)
                | Q(bio__icontains=term)
                | Q(skills__icontains=term)
            )
        return qs.order_by("-average_rating", "-total_reviews", "id")


class ClientProfileListView(generics.ListAPIView):
    """GET `/api/profiles/clients/` lists client profiles, newest first."""

    serializer_class = ClientProfileListSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (
            Profile.objects.select_related("user")
            .filter(role=Profile.Role.CLIENT)
            .order_by("-created_at", "-id")
        )
