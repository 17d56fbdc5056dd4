"""Admin panel API views.

Every endpoint requires the admin role. Moderation actions reuse the same
services as the owner-facing endpoints so derived statistics stay consistent.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from admin_panel import analytics
from gigs import services as gig_services
from gigs.models import Gig
from orders import lifecycle
from orders.api.serializers import OrderOutputSerializer, OrderStatusSerializer
from orders.models import Order
from reviews import services as review_services
from reviews.api.serializers import ReviewModerationSerializer
from reviews.models import Review
from user_auth_app.api.permissions import IsAdminRole, is_admin
from .serializers import (
    AdminGigDetailSerializer,
    AdminGigSerializer,
    AdminGigStatusSerializer,
    AdminResponseSerializer,
    AdminUserDetailSerializer,
    AdminUserSerializer,
    AdminUserUpdateSerializer,
    RejectReasonSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)

MAX_PERIOD_DAYS = 365


def _choice_filter(qs, params, key, field, choices):
    value = params.get(key)
    if value:
        if value not in choices:
            raise ValidationError({key: f"Allowed values: {', '.join(choices)}."})
        qs = qs.filter(**{field: value})
    return qs


class AdminAPIView(APIView):
    permission_classes = [IsAdminRole]


# ---- dashboard ----

class DashboardAPIView(AdminAPIView):
    """GET /api/admin/dashboard/ -> platform counters and recent activity."""

    def get(self, request):
        data = {"stats": analytics.dashboard_stats(), "recent_activity": analytics.recent_activity()}
        return Response(data, status=status.HTTP_200_OK)


class AnalyticsAPIView(AdminAPIView):
    """GET /api/admin/analytics/?period=<days> -> daily trends and revenue per category."""

    def get(self, request):
        raw = request.query_params.get("period", "30")
        if not raw.isdigit() or not 1 <= int(raw) <= MAX_PERIOD_DAYS:
            raise ValidationError({"period": f"Must be a number of days between 1 and {MAX_PERIOD_DAYS}."})
        return Response(analytics.analytics(int(raw)), status=status.HTTP_200_OK)


# ---- users ----

class AdminUserListAPIView(generics.ListAPIView):
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        params = self.request.query_params
        qs = User.objects.select_related("profile").order_by("-date_joined", "-id")
        qs = _choice_filter(qs, params, "role", "profile__role", ["client", "freelancer", "admin"])
        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(first_name__icontains=search) | Q(email__icontains=search))
        return qs


class AdminUserDetailAPIView(AdminAPIView):
    """GET: user with recent activity. PATCH: role, activation or suspension. DELETE: idle account."""

    def get(self, request, pk):
        user = get_object_or_404(User.objects.select_related("profile"), pk=pk)
        return Response(AdminUserDetailSerializer(user).data, status=status.HTTP_200_OK)

    def patch(self, request, pk):
        user = get_object_or_404(User, pk=pk)
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info("Admin %s updated user %s: %s", request.user.id, user.id, sorted(serializer.validated_data))
        fresh = User.objects.select_related("profile").get(pk=user.pk)
        return Response(AdminUserSerializer(fresh).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        user = get_object_or_404(User, pk=pk)
        if user.pk == request.user.pk:
            raise ValidationError({"detail": "You cannot delete your own account."})
        if is_admin(user):
            raise PermissionDenied("Admin accounts cannot be deleted here.")

        active_orders = Order.objects.filter(
            Q(buyer=user) | Q(seller=user), status__in=lifecycle.ACTIVE_STATUSES
        ).exists()
        if active_orders:
            raise ValidationError({"detail": "User has active orders."})
        if Gig.objects.filter(seller=user, status=Gig.Status.ACTIVE).exists():
            raise ValidationError({"detail": "User has active gigs."})

        with transaction.atomic():
            user.delete()
        logger.info("Admin %s deleted user %s", request.user.id, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---- gigs ----

class AdminGigListAPIView(generics.ListAPIView):
    serializer_class = AdminGigSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        params = self.request.query_params
        qs = Gig.objects.select_related("seller").order_by("-created_at", "-id")
        qs = _choice_filter(qs, params, "status", "status", Gig.Status.values)
        qs = _choice_filter(qs, params, "category", "category", Gig.Category.values)
        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
        return qs


class AdminGigDetailAPIView(AdminAPIView):
    """GET /api/admin/gigs/{id}/ -> full gig. DELETE -> remove it with its images."""

    def _get_gig(self, pk):
        qs = Gig.objects.select_related("seller", "seller__profile").prefetch_related("images")
        return get_object_or_404(qs, pk=pk)

    def get(self, request, pk):
        gig = self._get_gig(pk)
        return Response(AdminGigDetailSerializer(gig, context={"request": request}).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        gig = self._get_gig(pk)
        gig_services.delete_gig(gig)
        logger.info("Admin %s deleted gig %s", request.user.id, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminGigStatusAPIView(AdminAPIView):
    """PATCH /api/admin/gigs/{id}/status/ -> approve, pause or reject a gig."""

    def patch(self, request, pk):
        gig = get_object_or_404(Gig, pk=pk)
        serializer = AdminGigStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        gig_services.change_status(
            gig, data["status"], as_admin=True, actor=request.user, reason=data.get("reason", "").strip()
        )
        return Response(AdminGigSerializer(gig).data, status=status.HTTP_200_OK)


# ---- orders ----

class AdminOrderListAPIView(generics.ListAPIView):
    serializer_class = OrderOutputSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        qs = Order.objects.select_related("gig", "buyer", "seller", "conversation").prefetch_related(
            "delivery_files", "revision_requests"
        )
        qs = _choice_filter(qs, self.request.query_params, "status", "status", Order.Status.values)
        return qs.order_by("-created_at", "-id")


class AdminOrderDetailAPIView(AdminAPIView):
    def get(self, request, pk):
        qs = Order.objects.select_related("gig", "buyer", "seller", "conversation").prefetch_related(
            "delivery_files", "revision_requests"
        )
        order = get_object_or_404(qs, pk=pk)
        return Response(OrderOutputSerializer(order, context={"request": request}).data, status=status.HTTP_200_OK)


class AdminOrderStatusAPIView(AdminAPIView):
    """PATCH /api/admin/orders/{id}/status/ -> transition as admin."""

    def patch(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = lifecycle.transition(
            order, request.user, data["status"], message=data.get("message"), reason=data.get("reason"), role="admin"
        )
        return Response(OrderOutputSerializer(order, context={"request": request}).data, status=status.HTTP_200_OK)


# ---- reviews ----

class AdminReviewListAPIView(generics.ListAPIView):
    serializer_class = ReviewModerationSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        params = self.request.query_params
        qs = Review.objects.select_related("reviewer").order_by("-created_at", "-id")
        qs = _choice_filter(qs, params, "status", "status", Review.Status.values)
        reported = params.get("reported")
        if reported in ("true", "1"):
            qs = qs.filter(reported=True)
        elif reported in ("false", "0"):
            qs = qs.filter(reported=False)
        return qs


class AdminReviewApproveAPIView(AdminAPIView):
    def patch(self, request, pk):
        review = get_object_or_404(Review, pk=pk)
        review_services.moderate(review, Review.Status.APPROVED, request.user)
        return Response(ReviewModerationSerializer(review).data, status=status.HTTP_200_OK)


class AdminReviewRejectAPIView(AdminAPIView):
    def patch(self, request, pk):
        review = get_object_or_404(Review, pk=pk)
        serializer = RejectReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review_services.moderate(review, Review.Status.REJECTED, request.user, serializer.validated_data["reason"])
        return Response(ReviewModerationSerializer(review).data, status=status.HTTP_200_OK)


class AdminReviewDetailAPIView(AdminAPIView):
    def get(self, request, pk):
        review = get_object_or_404(Review.objects.select_related("reviewer"), pk=pk)
        return Response(ReviewModerationSerializer(review).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        review = get_object_or_404(Review, pk=pk)
        review_services.delete_review(review)
        logger.info("Admin %s deleted review %s", request.user.id, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminReviewResponseAPIView(AdminAPIView):
    """PATCH /api/admin/reviews/{id}/response/ -> set the public admin reply."""

    def patch(self, request, pk):
        review = get_object_or_404(Review, pk=pk)
        serializer = AdminResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review_services.respond(review, request.user, serializer.validated_data["content"])
        return Response(ReviewModerationSerializer(review).data, status=status.HTTP_200_OK)
