"""Gigs API serializers.

Provide serializers for creating gigs (JSON or multipart with images), listing
gigs, retrieving a single gig with its images and seller card, partially
updating a gig and changing its status.
"""

from decimal import Decimal

from rest_framework import serializers

from ..models import Gig, GigImage


# --------------------------- helpers (pure functions) ---------------------------

def _clean_str_list(values, field):
    if any(not isinstance(x, str) for x in values):
        raise serializers.ValidationError({field: "All entries must be strings."})
    return [x.strip() for x in values if x.strip()]


def _seller_card(user):
    profile = getattr(user, "profile", None)
    return {
        "id": user.id,
        "name": user.first_name or "",
        "profile_picture": getattr(profile, "profile_picture", "") or "",
        "average_rating": str(getattr(profile, "average_rating", "0.00")),
        "total_reviews": getattr(profile, "total_reviews", 0),
    }


# ------------------------------ custom field ------------------------------

class DelimitedListField(serializers.Field):
    """
    A list of strings given either as a JSON array or, from multipart forms,
    as one string split on ``separator``.
    """

    def __init__(self, separator=",", **kwargs):
        self.separator = separator
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.split(self.separator)
        if not isinstance(data, (list, tuple)):
            raise serializers.ValidationError("Must be an array of strings.")
        return _clean_str_list(list(data), self.field_name)

    def to_representation(self, value):
        return list(value or [])


# --------------------------------- serializers ---------------------------------

class GigImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = GigImage
        fields = ["id", "url", "original_name", "size", "mimetype", "is_primary", "position", "uploaded_at"]
        read_only_fields = fields


class GigWriteSerializer(serializers.ModelSerializer):
    """Validate gig content on create and update.

    Notes:
    - The seller is taken from request.user and never from the payload.
    - Status and statistics cannot be written here.
    """

    title = serializers.CharField(min_length=10, max_length=100)
    description = serializers.CharField(min_length=50, max_length=2000)
    subcategory = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("5"))
    delivery_time = serializers.IntegerField(min_value=1, max_value=30)
    revisions = serializers.IntegerField(min_value=0, max_value=10, required=False)
    tags = DelimitedListField(separator=",", required=False)
    requirements = DelimitedListField(separator="\n", required=False)

    class Meta:
        model = Gig
        fields = [
            "title",
            "description",
            "category",
            "subcategory",
            "price",
            "delivery_time",
            "revisions",
            "tags",
            "requirements",
        ]

    def validate_subcategory(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Subcategory is required.")
        return value


class GigListSerializer(serializers.ModelSerializer):
    """List serializer with the primary image URL and a compact seller card."""

    seller = serializers.SerializerMethodField()
    primary_image = serializers.SerializerMethodField()

    class Meta:
        model = Gig
        fields = [
            "id",
            "title",
            "slug",
            "category",
            "subcategory",
            "price",
            "delivery_time",
            "status",
            "rating",
            "total_reviews",
            "total_orders",
            "primary_image",
            "seller",
            "created_at",
        ]

    def get_seller(self, obj):
        return _seller_card(obj.seller)

    def get_primary_image(self, obj):
        img = obj.primary_image
        return img.url if img else None


class GigDetailSerializer(GigListSerializer):
    """Full gig payload including images, tags, requirements and stats."""

    images = GigImageSerializer(many=True, read_only=True)

    class Meta(GigListSerializer.Meta):
        fields = GigListSerializer.Meta.fields + [
            "description",
            "revisions",
            "tags",
            "requirements",
            "images",
            "total_views",
            "total_earnings",
            "approved_at",
            "rejection_reason",
            "updated_at",
        ]


class GigStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Gig.Status.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class PrimaryImageSerializer(serializers.Serializer):
    image_id = serializers.IntegerField()
