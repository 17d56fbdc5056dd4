"""Gigs API views.

List and create gigs on the same endpoint with pagination, searching, and
filtering. Retrieve, update, and delete are provided on the gig detail route.
Status changes and image management have dedicated endpoints.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.http import Http404
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.uploads import validate_upload_batch
from user_auth_app.api.permissions import is_admin, is_owner_or_admin, role_required
from gigs import services
from gigs.models import Gig
from .permissions import IsGigOwnerOrAdmin
from .serializers import (
    GigDetailSerializer,
    GigImageSerializer,
    GigListSerializer,
    GigStatusSerializer,
    GigWriteSerializer,
    PrimaryImageSerializer,
)

logger = logging.getLogger(__name__)

ORDERING_FIELDS = {"created_at", "price", "rating", "total_orders"}


# ---- helpers (module-level) ----

def _base_queryset():
    return Gig.objects.select_related("seller", "seller__profile").prefetch_related("images")


def _parse_decimal(params, key):
    raw = params.get(key)
    if raw is None or raw == "":
        return None
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValidationError({key: "Must be a number."})


def _parse_int(params, key):
    raw = params.get(key)
    if raw is None or raw == "":
        return None
    if not raw.isdigit():
        raise ValidationError({key: "Must be an integer."})
    return int(raw)


def _uploaded_images(request):
    return validate_upload_batch(request.FILES.getlist("images"), field="images")


class GigListCreateAPIView(generics.ListCreateAPIView):
    """GET: paginated list of active gigs with filters; POST: create gig (freelancer-only)."""

    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_permissions(self):
        """Allow only freelancers to create gigs; list is public."""
        if self.request.method == "POST":
            return [IsAuthenticated(), role_required("freelancer")()]
        return [AllowAny()]

    def get_serializer_class(self):
        if self.request.method == "GET":
            return GigListSerializer
        return GigWriteSerializer

    def get_queryset(self):
        qs = _base_queryset().filter(status=Gig.Status.ACTIVE)
        qs = self._apply_filters(qs, self.request.query_params)
        return self._apply_ordering(qs, self.request.query_params.get("ordering"))

    # --- helpers ---
    def _apply_filters(self, qs, params):
        category = params.get("category")
        if category:
            if category not in Gig.Category.values:
                raise ValidationError({"category": "Unknown category."})
            qs = qs.filter(category=category)

        seller = _parse_int(params, "seller")
        if seller is not None:
            qs = qs.filter(seller_id=seller)

        min_price = _parse_decimal(params, "min_price")
        if min_price is not None:
            qs = qs.filter(price__gte=min_price)

        max_price = _parse_decimal(params, "max_price")
        if max_price is not None:
            qs = qs.filter(price__lte=max_price)

        rating = _parse_decimal(params, "rating")
        if rating is not None:
            qs = qs.filter(rating__gte=rating)

        delivery = _parse_int(params, "delivery_time")
        if delivery is not None:
            qs = qs.filter(delivery_time__lte=delivery)

        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(title__icontains=search)
                | Q(description__icontains=search)
                | Q(tags__icontains=search)
            )
        return qs

    def _apply_ordering(self, qs, ordering):
        if not ordering:
            return qs.order_by("-created_at", "-id")
        if ordering.lstrip("-") not in ORDERING_FIELDS:
            allowed = ", ".join(sorted(ORDERING_FIELDS))
            raise ValidationError({"ordering": f"Allowed values: {allowed} (prefix '-' for descending)."})
        return qs.order_by(ordering, "-id")

    def create(self, request, *args, **kwargs):
        """Create a draft gig, store any uploaded images and return the full gig."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        files = _uploaded_images(request)

        gig = serializer.save(seller=request.user, status=Gig.Status.DRAFT)
        if files:
            services.add_images(gig, files)
        logger.info("User %s created gig %s", request.user.id, gig.id)

        full = GigDetailSerializer(_base_queryset().get(pk=gig.pk), context={"request": request})
        return Response(full.data, status=status.HTTP_201_CREATED)


class MyGigListAPIView(generics.ListAPIView):
    """GET /api/gigs/mine/ -> the caller's own gigs in every status."""

    serializer_class = GigListSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = _base_queryset().filter(seller=self.request.user)
        status_param = self.request.query_params.get("status")
        if status_param:
            qs = qs.filter(status=status_param)
        return qs.order_by("-updated_at", "-id")


class GigRetrieveUpdateDestroyAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET: retrieve gig, PATCH/PUT: update (owner/admin), DELETE: remove (owner/admin)."""

    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_queryset(self):
        return _base_queryset()

    def get_permissions(self):
        """Enforce gig ownership for modifications; reads are public."""
        if self.request.method in ["PATCH", "PUT", "DELETE"]:
            return [IsAuthenticated(), IsGigOwnerOrAdmin()]
        return [AllowAny()]

    def get_serializer_class(self):
        if self.request.method in ["PATCH", "PUT"]:
            return GigWriteSerializer
        return GigDetailSerializer

    def retrieve(self, request, *args, **kwargs):
        """Return the gig; unpublished gigs are only visible to owner and admins."""
        gig = self.get_object()
        user = request.user
        if gig.status != Gig.Status.ACTIVE and not is_owner_or_admin(user, gig.seller_id):
            raise Http404
        if not (user.is_authenticated and user.id == gig.seller_id):
            Gig.objects.filter(pk=gig.pk).update(total_views=F("total_views") + 1)
            gig.total_views += 1
        return Response(self.get_serializer(gig).data, status=status.HTTP_200_OK)

    def update(self, request, *args, **kwargs):
        """Perform a partial update and return the full gig payload."""
        partial = kwargs.pop("partial", True)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)

        full = GigDetailSerializer(_base_queryset().get(pk=instance.pk), context={"request": request})
        return Response(full.data, status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        """Delete the gig (400 while orders reference it) and respond with 204."""
        instance = self.get_object()
        services.delete_gig(instance)
        return Response(status=status.HTTP_204_NO_CONTENT)


class GigOwnedObjectMixin:
    """Resolve the gig from the URL and check owner/admin access."""

    permission_classes = [IsAuthenticated, IsGigOwnerOrAdmin]

    def get_gig(self):
        gig = get_object_or_404(Gig, pk=self.kwargs["pk"])
        self.check_object_permissions(self.request, gig)
        return gig


class GigStatusAPIView(GigOwnedObjectMixin, APIView):
    """PATCH /api/gigs/{id}/status/ -> owner submit/pause/resume/withdraw; admin any."""

    def patch(self, request, *args, **kwargs):
        gig = self.get_gig()
        serializer = GigStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.change_status(
            gig,
            serializer.validated_data["status"],
            as_admin=is_admin(request.user),
            actor=request.user,
            reason=serializer.validated_data.get("reason", ""),
        )
        full = GigDetailSerializer(_base_queryset().get(pk=gig.pk), context={"request": request})
        return Response(full.data, status=status.HTTP_200_OK)


class GigImageUploadAPIView(GigOwnedObjectMixin, APIView):
    """POST /api/gigs/{id}/images/ -> append uploaded images."""

    parser_classes = (MultiPartParser, FormParser)

    def post(self, request, *args, **kwargs):
        gig = self.get_gig()
        files = _uploaded_images(request)
        if not files:
            raise ValidationError({"images": "No images provided."})
        services.add_images(gig, files)
        images = GigImageSerializer(gig.images.all(), many=True).data
        return Response(images, status=status.HTTP_201_CREATED)


class GigPrimaryImageAPIView(GigOwnedObjectMixin, APIView):
    """PATCH /api/gigs/{id}/images/primary/ -> mark one image as primary."""

    def patch(self, request, *args, **kwargs):
        gig = self.get_gig()
        serializer = PrimaryImageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        image = gig.images.filter(pk=serializer.validated_data["image_id"]).first()
        if image is None:
            raise ValidationError({"image_id": "Image does not belong to this gig."})
        services.set_primary_image(gig, image)
        images = GigImageSerializer(gig.images.all(), many=True).data
        return Response(images, status=status.HTTP_200_OK)


class GigImageDeleteAPIView(GigOwnedObjectMixin, APIView):
    """DELETE /api/gigs/{id}/images/{image_id}/ -> remove one image and its file."""

    def delete(self, request, *args, **kwargs):
        gig = self.get_gig()
        image = get_object_or_404(gig.images, pk=self.kwargs["image_id"])
        services.remove_image(gig, image)
        images = GigImageSerializer(gig.images.all(), many=True).data
        return Response(images, status=status.HTTP_200_OK)
