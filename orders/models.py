"""Orders app models.

Defines the Order model plus the delivery files and revision requests that
belong to it. An Order snapshots the gig price at creation time so later price
changes never alter what the buyer agreed to pay.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from gigs.models import Gig


class Order(models.Model):
    """Represents a purchase of a gig by a client from a freelancer."""

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        ACCEPTED = "accepted", "accepted"
        IN_PROGRESS = "in_progress", "in_progress"
        DELIVERED = "delivered", "delivered"
        COMPLETED = "completed", "completed"
        CANCELLED = "cancelled", "cancelled"
        DISPUTED = "disputed", "disputed"

    class Party(models.TextChoices):
        BUYER = "buyer", "buyer"
        SELLER = "seller", "seller"
        ADMIN = "admin", "admin"

    gig = models.ForeignKey(Gig, on_delete=models.PROTECT, related_name="orders")
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_placed",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_received",
    )

    amount = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("5"))]
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    requirements = models.JSONField(default=list)

    delivery_message = models.TextField(blank=True, default="")
    delivery_date = models.DateTimeField(null=True, blank=True)
    completed_date = models.DateTimeField(null=True, blank=True)
    cancelled_date = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=10, choices=Party.choices, blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")
    dispute_reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["buyer", "status"]),
            models.Index(fields=["seller", "status"]),
            models.Index(fields=["gig", "status"]),
        ]

    def __str__(self) -> str:
        """Readable representation for admin and debugging."""
        return f"Order<{self.id} gig={self.gig_id} {self.status}>"


class DeliveryFile(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="delivery_files")
    url = models.CharField(max_length=255)
    filename = models.CharField(max_length=255)
    original_name = models.CharField(max_length=255, blank=True, default="")
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["uploaded_at", "id"]


class RevisionRequest(models.Model):
    """A buyer's request for changes; it never moves the order status by itself."""

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        COMPLETED = "completed", "completed"

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="revision_requests")
    message = models.TextField(max_length=1000)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    requested_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["requested_at", "id"]
