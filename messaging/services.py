"""Conversation and message operations shared by the messaging and orders APIs.

All writes that touch unread counters run in one transaction together with
the message row they belong to.
"""

import logging

from django.db import transaction
from django.db.models import F, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from common.uploads import (
    ATTACHMENT_EXTENSIONS,
    ATTACHMENT_MIME_TYPES,
    store_upload,
    validate_upload_batch,
)
from user_auth_app.api.permissions import is_admin
from . import realtime
from .models import Conversation, ConversationParticipant, Message

logger = logging.getLogger(__name__)


# ---- access ----

def is_participant(conversation, user):
    return ConversationParticipant.objects.filter(conversation=conversation, user_id=user.id).exists()


def ensure_can_access(conversation, user):
    """Participants may use a thread; admins may also use order threads."""
    if is_participant(conversation, user):
        return
    if conversation.order_id and is_admin(user):
        return
    raise PermissionDenied("You are not a participant of this conversation.")


# ---- threads ----

def _add_participants(conversation, users):
    for user in users:
        ConversationParticipant.objects.get_or_create(conversation=conversation, user=user)


@transaction.atomic
def get_or_create_order_conversation(order):
    conversation, created = Conversation.objects.get_or_create(order=order, defaults={"gig": order.gig})
    if created:
        _add_participants(conversation, [order.buyer, order.seller])
        logger.info("Opened thread %s for order %s", conversation.id, order.id)
    return conversation


def find_direct_conversation(user, other, gig=None):
    qs = (
        Conversation.objects.filter(order__isnull=True)
        .exclude(status=Conversation.Status.BLOCKED)
        .filter(memberships__user=user)
        .filter(memberships__user=other)
    )
    if gig is not None:
        qs = qs.filter(Q(gig=gig) | Q(gig__isnull=True))
    return qs.order_by("-last_message_at", "-id").first()


@transaction.atomic
def get_or_create_direct_conversation(user, other, gig=None):
    """Return ``(conversation, created)`` for a non-order thread between two users."""
    existing = find_direct_conversation(user, other, gig)
    if existing is not None:
        return existing, False
    conversation = Conversation.objects.create(gig=gig)
    _add_participants(conversation, [user, other])
    return conversation, True


def set_status(conversation, user, status):
    conversation.status = status
    conversation.blocked_by = user if status == Conversation.Status.BLOCKED else None
    conversation.save(update_fields=["status", "blocked_by", "updated_at"])
    return conversation


# ---- messages ----

def serialize_message(message):
    from .api.serializers import MessageSerializer

    data = dict(MessageSerializer(message).data)
    data["conversation"] = message.conversation_id
    data["order"] = message.conversation.order_id
    return data


@transaction.atomic
def send_message(conversation, sender, content, message_type=Message.Type.TEXT, attachments=None):
    """Store a message and bump the unread counter of every other participant by one."""
    if conversation.status == Conversation.Status.BLOCKED:
        raise PermissionDenied("This conversation is blocked.")

    message = Message.objects.create(
        conversation=conversation,
        sender=sender,
        content=content,
        message_type=message_type,
        attachments=attachments or [],
    )
    others = ConversationParticipant.objects.filter(conversation=conversation).exclude(user_id=sender.id)
    recipient_ids = list(others.values_list("user_id", flat=True))
    others.update(unread_count=F("unread_count") + 1)
    Conversation.objects.filter(pk=conversation.pk).update(
        last_message=message, last_message_at=message.created_at, updated_at=timezone.now()
    )
    conversation.last_message = message
    conversation.last_message_at = message.created_at

    realtime.message_created(conversation, serialize_message(message), recipient_ids)
    return message


@transaction.atomic
def mark_read(conversation, user):
    """Mark every message not sent by ``user`` as read and reset their counter."""
    now = timezone.now()
    membership = (
        ConversationParticipant.objects.select_for_update()
        .filter(conversation=conversation, user_id=user.id)
        .first()
    )
    if membership is None:
        return []

    unread = conversation.messages.filter(read=False).exclude(sender_id=user.id)
    ids = list(unread.values_list("id", flat=True))
    if ids:
        Message.objects.filter(pk__in=ids).update(read=True, read_at=now)
    membership.unread_count = 0
    membership.last_read_at = now
    membership.save(update_fields=["unread_count", "last_read_at"])

    realtime.messages_read(conversation, user.id, ids)
    return ids


def total_unread(user):
    total = (
        ConversationParticipant.objects.filter(user_id=user.id)
        .exclude(conversation__status=Conversation.Status.BLOCKED)
        .aggregate(total=Sum("unread_count"))["total"]
    )
    return total or 0


def store_attachments(files, owner_id):
    """Validate and store message attachments; return their metadata list."""
    files = validate_upload_batch(
        files, field="attachments", mime_types=ATTACHMENT_MIME_TYPES, extensions=ATTACHMENT_EXTENSIONS
    )
    stored = []
    for f in files:
        meta = store_upload(f, "messages", owner_id)
        stored.append(
            {
                "url": meta["url"],
                "name": meta["original_name"],
                "size": meta["size"],
                "mimetype": meta["mimetype"],
            }
        )
    return stored
