"""Profiles app models.

Defines the Profile model that extends the base user with the marketplace role
(client/freelancer/admin), public profile data, aggregate statistics and the
moderation flags. String fields default to empty strings to avoid nulls in API
responses.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Profile(models.Model):
    """
    Profile for a single user.

    A profile is created exactly once per user at registration. ``total_orders``
    and ``total_earnings`` only change through order completion;
    ``average_rating`` and ``total_reviews`` are derived from approved reviews.
    """

    class Role(models.TextChoices):
        CLIENT = "client", "client"
        FREELANCER = "freelancer", "freelancer"
        ADMIN = "admin", "admin"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CLIENT)

    profile_picture = models.CharField(max_length=255, blank=True, default="")
    bio = models.TextField(max_length=500, blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    website = models.CharField(max_length=255, blank=True, default="")
    skills = models.JSONField(default=list, blank=True)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("5"))],
    )

    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_orders = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    total_reviews = models.PositiveIntegerField(default=0)

    is_suspended = models.BooleanField(default=False)
    suspension_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=["role"])]

    def __str__(self):
        """Readable representation for admin and debugging."""
        return f"Profile<{self.user_id}:{self.role}>"
