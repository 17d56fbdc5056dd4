"""Gigs app models.

Defines the Gig model (a service offered by a freelancer) and GigImage rows
holding the uploaded pictures of a gig. A gig has at most one primary image,
enforced by a conditional unique constraint.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.text import slugify


class Gig(models.Model):
    """A service offered by a freelancer."""

    class Category(models.TextChoices):
        GRAPHICS_DESIGN = "Graphics & Design", "Graphics & Design"
        DIGITAL_MARKETING = "Digital Marketing", "Digital Marketing"
        WRITING_TRANSLATION = "Writing & Translation", "Writing & Translation"
        VIDEO_ANIMATION = "Video & Animation", "Video & Animation"
        MUSIC_AUDIO = "Music & Audio", "Music & Audio"
        PROGRAMMING_TECH = "Programming & Tech", "Programming & Tech"
        BUSINESS = "Business", "Business"
        LIFESTYLE = "Lifestyle", "Lifestyle"
        DATA = "Data", "Data"
        PHOTOGRAPHY = "Photography", "Photography"

    class Status(models.TextChoices):
        DRAFT = "draft", "draft"
        PENDING = "pending", "pending"
        ACTIVE = "active", "active"
        PAUSED = "paused", "paused"
        REJECTED = "rejected", "rejected"

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="gigs",
    )
    title = models.CharField(max_length=100)
    slug = models.SlugField(max_length=130, unique=True, blank=True)
    description = models.TextField(max_length=2000)
    category = models.CharField(max_length=50, choices=Category.choices)
    subcategory = models.CharField(max_length=100)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("5"))]
    )
    delivery_time = models.PositiveIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(30)]
    )
    revisions = models.PositiveIntegerField(default=0, validators=[MaxValueValidator(10)])
    tags = models.JSONField(default=list, blank=True)
    requirements = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)

    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0"))
    total_reviews = models.PositiveIntegerField(default=0)
    total_orders = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_views = models.PositiveIntegerField(default=0)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_gigs",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "gigs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "category"]),
            models.Index(fields=["seller", "status"]),
            models.Index(fields=["-rating", "-total_orders"]),
        ]

    def __str__(self):
        return f"{self.title} (#{self.pk})"

    def save(self, *args, **kwargs):
        if not self.slug or self._title_changed():
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    def _title_changed(self):
        if not self.pk:
            return True
        old = Gig.objects.filter(pk=self.pk).values_list("title", flat=True).first()
        return old != self.title

    def _unique_slug(self):
        base = slugify(self.title)[:120] or "gig"
        slug, n = base, 2
        while Gig.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{n}"
            n += 1
        return slug

    @property
    def primary_image(self):
        images = list(self.images.all())
        for img in images:
            if img.is_primary:
                return img
        return images[0] if images else None


class GigImage(models.Model):
    """A stored picture of a gig; files live in default storage under ``gigs/``."""

    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name="images")
    url = models.CharField(max_length=255)
    filename = models.CharField(max_length=255)
    original_name = models.CharField(max_length=255, blank=True, default="")
    size = models.PositiveIntegerField(default=0)
    mimetype = models.CharField(max_length=100, blank=True, default="")
    is_primary = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "gig_images"
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["gig"],
                condition=Q(is_primary=True),
                name="unique_primary_image_per_gig",
            )
        ]

    def __str__(self):
        return f"image {self.position} of gig #{self.gig_id}"
