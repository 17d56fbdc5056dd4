"""Orders API views.

List and create orders on the same endpoint, returning only orders that
involve the authenticated user (as buyer or seller; admins see all). Every
status change, including the delivery/complete/cancel shortcuts, goes through
``orders.lifecycle.transition``. Also provides the order thread and count
endpoints for a given seller.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import Conflict
from common.pagination import MessagePagination
from messaging import services as messaging
from messaging.api.serializers import MessageCreateSerializer, MessageSerializer
from messaging.models import Message
from orders import lifecycle
from orders.models import Order, RevisionRequest
from profiles.models import Profile
from user_auth_app.api.permissions import is_admin, role_required
from .permissions import IsOrderBuyer, IsOrderParty, IsOrderSeller
from .serializers import (
    DeliverySerializer,
    OrderCreateSerializer,
    OrderOutputSerializer,
    OrderStatusSerializer,
    ReasonSerializer,
    RevisionCreateSerializer,
    RevisionRequestSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# ----------------------------- helpers (module-level) -----------------------------

def _base_queryset():
    return Order.objects.select_related("gig", "buyer", "seller", "conversation").prefetch_related(
        "delivery_files", "revision_requests"
    )


def _user_orders_queryset(user, params):
    """Orders the user takes part in, filtered by ``role`` and ``status``."""
    qs = _base_queryset()
    role = params.get("role")
    if role == "buyer":
        qs = qs.filter(buyer=user)
    elif role == "seller":
        qs = qs.filter(seller=user)
    elif role:
        raise ValidationError({"role": "Allowed values: buyer, seller."})
    elif not is_admin(user):
        qs = qs.filter(Q(buyer=user) | Q(seller=user))

    status_value = params.get("status")
    if status_value:
        if status_value not in Order.Status.values:
            raise ValidationError({"status": "Unknown status."})
        qs = qs.filter(status=status_value)
    return qs.order_by("-created_at", "-id")


def _order_response(order, request, code=status.HTTP_200_OK):
    fresh = _base_queryset().get(pk=order.pk)
    return Response(OrderOutputSerializer(fresh, context={"request": request}).data, status=code)


def _seller_or_404(seller_id: int):
    user = get_object_or_404(User.objects.select_related("profile"), id=seller_id)
    if getattr(getattr(user, "profile", None), "role", "") != Profile.Role.FREELANCER:
        return None
    return user


# --------------------------------------- views ---------------------------------------

class OrderListCreateAPIView(generics.ListCreateAPIView):
    """GET: list orders of the authenticated user (as buyer or seller).
    POST: create a new order from a gig (client-only).
    """

    def get_permissions(self):
        """Client-only on POST, otherwise just authenticated."""
        if self.request.method == "POST":
            return [IsAuthenticated(), role_required("client")()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        return OrderOutputSerializer if self.request.method == "GET" else OrderCreateSerializer

    def get_queryset(self):
        return _user_orders_queryset(self.request.user, self.request.query_params)

    def create(self, request, *args, **kwargs):
        """Create the order and its message thread in one transaction."""
        serializer = OrderCreateSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            order = serializer.save()
            messaging.get_or_create_order_conversation(order)
        logger.info("Order %s placed by %s for gig %s", order.id, request.user.id, order.gig_id)
        return _order_response(order, request, status.HTTP_201_CREATED)


class OrderObjectMixin:
    """Resolve the order from the URL and run the object-level permissions."""

    permission_classes = [IsAuthenticated, IsOrderParty]

    def get_order(self):
        order = get_object_or_404(_base_queryset(), pk=self.kwargs["pk"])
        self.check_object_permissions(self.request, order)
        return order


class OrderDetailAPIView(OrderObjectMixin, APIView):
    """GET /api/orders/{id}/ -> full order for buyer, seller or admin."""

    def get(self, request, pk):
        return _order_response(self.get_order(), request)


class OrderStatusAPIView(OrderObjectMixin, APIView):
    """PATCH /api/orders/{id}/status/ -> generic transition through the lifecycle table."""

    def patch(self, request, pk):
        order = self.get_order()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        lifecycle.transition(order, request.user, data["status"], message=data.get("message"), reason=data.get("reason"))
        return _order_response(order, request)


class OrderDeliveryAPIView(OrderObjectMixin, APIView):
    """POST /api/orders/{id}/delivery/ -> seller delivers with optional message and files."""

    permission_classes = [IsAuthenticated, IsOrderSeller]
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def post(self, request, pk):
        order = self.get_order()
        serializer = DeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lifecycle.transition(
            order,
            request.user,
            Order.Status.DELIVERED,
            message=serializer.validated_data.get("message"),
            files=request.FILES.getlist("files"),
        )
        return _order_response(order, request)


class OrderCompleteAPIView(OrderObjectMixin, APIView):
    """PATCH /api/orders/{id}/complete/ -> buyer (or admin) accepts the delivery."""

    def patch(self, request, pk):
        order = self.get_order()
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lifecycle.transition(order, request.user, Order.Status.COMPLETED, message=serializer.validated_data.get("message"))
        return _order_response(order, request)


class OrderCancelAPIView(OrderObjectMixin, APIView):
    """PATCH /api/orders/{id}/cancel/ -> cancel with an optional reason."""

    def patch(self, request, pk):
        order = self.get_order()
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        lifecycle.transition(
            order, request.user, Order.Status.CANCELLED, message=data.get("message"), reason=data.get("reason")
        )
        return _order_response(order, request)


class OrderRevisionAPIView(OrderObjectMixin, APIView):
    """POST /api/orders/{id}/revision/ -> buyer asks for changes (status unchanged)."""

    permission_classes = [IsAuthenticated, IsOrderBuyer]

    def post(self, request, pk):
        order = self.get_order()
        serializer = RevisionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if order.status not in (Order.Status.IN_PROGRESS, Order.Status.DELIVERED):
            raise Conflict("Revisions can only be requested while the order is in progress or delivered.")

        message = serializer.validated_data["message"]
        with transaction.atomic():
            revision = RevisionRequest.objects.create(order=order, message=message)
            conversation = messaging.get_or_create_order_conversation(order)
            messaging.send_message(
                conversation, request.user, f"Revision requested: {message}", message_type=Message.Type.ORDER_UPDATE
            )
        return Response(RevisionRequestSerializer(revision).data, status=status.HTTP_201_CREATED)


class OrderRevisionCompleteAPIView(OrderObjectMixin, APIView):
    """PATCH /api/orders/{id}/revisions/{rid}/ -> seller marks a revision request done."""

    permission_classes = [IsAuthenticated, IsOrderSeller]

    def patch(self, request, pk, rid):
        order = self.get_order()
        revision = get_object_or_404(RevisionRequest, pk=rid, order=order)
        if revision.status == RevisionRequest.Status.COMPLETED:
            raise Conflict("This revision request is already completed.")
        revision.status = RevisionRequest.Status.COMPLETED
        revision.completed_at = timezone.now()
        revision.save(update_fields=["status", "completed_at"])
        return Response(RevisionRequestSerializer(revision).data, status=status.HTTP_200_OK)


class OrderMessagesAPIView(OrderObjectMixin, generics.ListCreateAPIView):
    """GET/POST /api/orders/{id}/messages/ -> the order thread."""

    pagination_class = MessagePagination
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_conversation(self):
        if not hasattr(self, "_conversation"):
            self._conversation = messaging.get_or_create_order_conversation(self.get_order())
        return self._conversation

    def get_serializer_class(self):
        return MessageCreateSerializer if self.request.method == "POST" else MessageSerializer

    def get_queryset(self):
        return self.get_conversation().messages.select_related("sender").order_by("created_at", "id")

    def create(self, request, *args, **kwargs):
        conversation = self.get_conversation()
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attachments = messaging.store_attachments(request.FILES.getlist("attachments"), request.user.id)
        message = messaging.send_message(
            conversation,
            request.user,
            serializer.validated_data["content"],
            message_type=serializer.validated_data["message_type"],
            attachments=attachments,
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class OrderCountAPIView(APIView):
    """GET /api/order-count/{seller_id}/ -> {"order_count": <int>}.
    Returns the number of active (not completed or cancelled) orders of the seller.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, seller_id: int):
        if _seller_or_404(seller_id) is None:
            return Response({"detail": "Freelancer not found."}, status=status.HTTP_404_NOT_FOUND)
        count = Order.objects.filter(seller_id=seller_id, status__in=lifecycle.ACTIVE_STATUSES).count()
        return Response({"order_count": count}, status=status.HTTP_200_OK)


class CompletedOrderCountAPIView(APIView):
    """GET /api/completed-order-count/{seller_id}/ -> {"completed_order_count": <int>}."""

    permission_classes = [IsAuthenticated]

    def get(self, request, seller_id: int):
        if _seller_or_404(seller_id) is None:
            return Response({"detail": "Freelancer not found."}, status=status.HTTP_404_NOT_FOUND)
        count = Order.objects.filter(seller_id=seller_id, status=Order.Status.COMPLETED).count()
        return Response({"completed_order_count": count}, status=status.HTTP_200_OK)
