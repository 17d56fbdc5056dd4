"""Messaging API views.

Conversations are listed per user with that user's own unread counter. Only
participants (and admins, for order threads) may read or post messages.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import OuterRef, Subquery
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.pagination import MessagePagination
from gigs.models import Gig
from messaging import services
from messaging.models import Conversation, ConversationParticipant
from orders.models import Order
from .serializers import (
    ConversationCreateSerializer,
    ConversationSerializer,
    ConversationStatusSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# ---- helpers (module-level) ----

def _conversations_for(user):
    unread = ConversationParticipant.objects.filter(
        conversation=OuterRef("pk"), user_id=user.id
    ).values("unread_count")[:1]
    return (
        Conversation.objects.filter(memberships__user=user)
        .annotate(_unread=Subquery(unread))
        .select_related("last_message")
        .prefetch_related("participants__profile")
    )


def _conversation_or_404(pk, user):
    conversation = get_object_or_404(Conversation.objects.select_related("order"), pk=pk)
    services.ensure_can_access(conversation, user)
    return conversation


class ConversationListCreateAPIView(generics.ListCreateAPIView):
    """GET: caller's non-blocked conversations; POST: find or open a thread."""

    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method == "POST":
            return ConversationCreateSerializer
        return ConversationSerializer

    def get_queryset(self):
        return (
            _conversations_for(self.request.user)
            .exclude(status=Conversation.Status.BLOCKED)
            .order_by("-last_message_at", "-updated_at", "-id")
        )

    def create(self, request, *args, **kwargs):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["participant_id"] == request.user.id:
            raise ValidationError({"participant_id": "You cannot start a conversation with yourself."})
        other = get_object_or_404(User, pk=data["participant_id"], is_active=True)

        if "order_id" in data:
            order = get_object_or_404(Order, pk=data["order_id"])
            if {order.buyer_id, order.seller_id} != {request.user.id, other.id}:
                raise PermissionDenied("Both users must be parties of this order.")
            existed = Conversation.objects.filter(order=order).exists()
            conversation = services.get_or_create_order_conversation(order)
            created = not existed
        else:
            gig = get_object_or_404(Gig, pk=data["gig_id"]) if "gig_id" in data else None
            conversation, created = services.get_or_create_direct_conversation(request.user, other, gig)

        out = ConversationSerializer(conversation, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class ConversationMessagesAPIView(generics.ListCreateAPIView):
    """GET: messages of a thread in chronological order; POST: send a message."""

    permission_classes = [IsAuthenticated]
    pagination_class = MessagePagination
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_conversation(self):
        if not hasattr(self, "_conversation"):
            self._conversation = _conversation_or_404(self.kwargs["pk"], self.request.user)
        return self._conversation

    def get_serializer_class(self):
        if self.request.method == "POST":
            return MessageCreateSerializer
        return MessageSerializer

    def get_queryset(self):
        return self.get_conversation().messages.select_related("sender").order_by("created_at", "id")

    def create(self, request, *args, **kwargs):
        conversation = self.get_conversation()
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attachments = services.store_attachments(request.FILES.getlist("attachments"), request.user.id)
        message = services.send_message(
            conversation,
            request.user,
            serializer.validated_data["content"],
            message_type=serializer.validated_data["message_type"],
            attachments=attachments,
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class ConversationReadAPIView(APIView):
    """PATCH /api/messages/conversations/{id}/read/ -> mark the thread read for the caller."""

    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        conversation = _conversation_or_404(pk, request.user)
        ids = services.mark_read(conversation, request.user)
        return Response({"conversation": conversation.id, "marked_read": len(ids)}, status=status.HTTP_200_OK)


class ConversationStatusAPIView(APIView):
    """PATCH /api/messages/conversations/{id}/status/ -> archive, block or reactivate."""

    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        conversation = get_object_or_404(Conversation, pk=pk)
        if not services.is_participant(conversation, request.user):
            raise PermissionDenied("You are not a participant of this conversation.")
        serializer = ConversationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target = serializer.validated_data["status"]

        if (
            conversation.status == Conversation.Status.BLOCKED
            and conversation.blocked_by_id not in (None, request.user.id)
        ):
            raise PermissionDenied("Only the user who blocked this conversation can change it.")
        services.set_status(conversation, request.user, target)
        logger.info("Conversation %s set to %s by %s", conversation.id, target, request.user.id)
        return Response(
            ConversationSerializer(conversation, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )


class UnreadCountAPIView(APIView):
    """GET /api/messages/unread-count/ -> {"unread_count": <int>}."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"unread_count": services.total_unread(request.user)}, status=status.HTTP_200_OK)
