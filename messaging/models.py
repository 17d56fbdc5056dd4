"""Messaging app models.

A Conversation is either a direct thread between two users (optionally about a
gig) or the thread of exactly one order. Per-user read state lives on
ConversationParticipant so every participant has an own unread counter.
"""

from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models


class Conversation(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "active"
        ARCHIVED = "archived", "archived"
        BLOCKED = "blocked", "blocked"

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="conversation",
    )
    gig = models.ForeignKey(
        "gigs.Gig",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="conversations",
    )
    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ConversationParticipant",
        related_name="conversations",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    blocked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    last_message = models.ForeignKey(
        "Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    last_message_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_message_at", "-updated_at", "-id"]

    def __str__(self):
        return f"Conversation<{self.id} order={self.order_id} {self.status}>"


class ConversationParticipant(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_memberships",
    )
    unread_count = models.PositiveIntegerField(default=0)
    last_read_at = models.DateTimeField(null=True, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["conversation", "user"], name="unique_conversation_participant")
        ]

    def __str__(self):
        return f"{self.user_id} in {self.conversation_id} ({self.unread_count} unread)"


class Message(models.Model):
    class Type(models.TextChoices):
        TEXT = "text", "text"
        IMAGE = "image", "image"
        FILE = "file", "file"
        ORDER_UPDATE = "order_update", "order_update"

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="messages_sent",
    )
    content = models.TextField(max_length=2000, validators=[MinLengthValidator(1)])
    message_type = models.CharField(max_length=20, choices=Type.choices, default=Type.TEXT)
    attachments = models.JSONField(default=list, blank=True)
    read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["conversation", "created_at"])]

    def __str__(self):
        return f"Message<{self.id} from {self.sender_id}>"
