"""Reviews API serializers.

Provide serializers for creating a review on a completed order, returning
review data, editing rating/comment and reporting a review. Enforces one
review per order and that only the order's buyer may write it.
"""

from django.db import IntegrityError, transaction
from rest_framework import serializers
from rest_framework.exceptions import NotFound, PermissionDenied

from common.exceptions import Conflict
from orders.models import Order
from reviews.models import Review


class ReviewCreateSerializer(serializers.Serializer):
    """Input serializer for creating a new review."""

    order_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000)

    def validate_order_id(self, value):
        """Ensure the order exists and the caller bought it."""
        order = Order.objects.select_related("gig").filter(pk=value).first()
        if order is None:
            raise NotFound("Order not found.")
        if order.buyer_id != self.context["request"].user.id:
            raise PermissionDenied("Only the buyer of this order can review it.")
        self.context["order_obj"] = order
        return value

    def validate(self, attrs):
        """Ensure the order is completed and not yet reviewed."""
        order = self.context["order_obj"]
        if order.status != Order.Status.COMPLETED:
            raise serializers.ValidationError({"order_id": "Only completed orders can be reviewed."})
        if Review.objects.filter(order=order).exists():
            raise Conflict("This order has already been reviewed.")
        return attrs

    def create(self, validated_data):
        """Create and return the pending review."""
        order = self.context["order_obj"]
        try:
            with transaction.atomic():
                return Review.objects.create(
                    order=order,
                    gig=order.gig,
                    reviewer=order.buyer,
                    reviewee=order.seller,
                    rating=validated_data["rating"],
                    comment=validated_data["comment"],
                )
        except IntegrityError:
            raise Conflict("This order has already been reviewed.")


class ReviewOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a review."""

    reviewer_name = serializers.CharField(source="reviewer.first_name", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id",
            "order",
            "gig",
            "reviewer",
            "reviewer_name",
            "reviewee",
            "rating",
            "comment",
            "status",
            "admin_response",
            "admin_response_at",
            "created_at",
            "updated_at",
        ]


class ReviewModerationSerializer(ReviewOutputSerializer):
    """Admin view of a review including report and moderation details."""

    class Meta(ReviewOutputSerializer.Meta):
        fields = ReviewOutputSerializer.Meta.fields + [
            "reported",
            "report_reason",
            "reported_by",
            "moderated_by",
            "moderated_at",
            "rejection_reason",
            "admin_response_by",
        ]


class ReviewPatchSerializer(serializers.Serializer):
    """Patch serializer for updating rating/comment only."""

    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(max_length=1000, required=False)

    def validate(self, attrs):
        extra = set(self.initial_data) - {"rating", "comment"}
        if extra:
            raise serializers.ValidationError(
                {"detail": f"Only 'rating' and 'comment' may be updated. Invalid: {', '.join(sorted(extra))}."}
            )
        return attrs


class ReviewReportSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)
