"""Orders API serializers.

Input/Output serializers for creating orders from gigs, representing orders
to their parties, and changing order status. Validation ensures that users
cannot order their own gigs and that only active gigs can be ordered.
"""

from rest_framework import serializers
from rest_framework.exceptions import NotFound, PermissionDenied

from gigs.models import Gig
from orders.models import DeliveryFile, Order, RevisionRequest


def _party(user):
    return {"id": user.id, "name": user.first_name or "", "email": user.email}


class OrderCreateSerializer(serializers.Serializer):
    """Input serializer for creating an order from a gig id.

    Validates:
    - gig_id exists and the gig is active
    - the authenticated user is not the seller of the gig
    - requirements is a non-empty list of strings
    """

    gig_id = serializers.IntegerField()
    requirements = serializers.ListField(
        child=serializers.CharField(max_length=1000), allow_empty=False
    )

    def validate_gig_id(self, value):
        gig = Gig.objects.select_related("seller").filter(id=value).first()
        if gig is None:
            raise NotFound("Gig not found.")
        if gig.status != Gig.Status.ACTIVE:
            raise serializers.ValidationError("Gig is not available for ordering.")
        self.context["gig_obj"] = gig
        return value

    def validate_requirements(self, value):
        cleaned = [r.strip() for r in value if r.strip()]
        if not cleaned:
            raise serializers.ValidationError("At least one requirement is needed.")
        return cleaned

    def validate(self, attrs):
        request = self.context["request"]
        if self.context["gig_obj"].seller_id == request.user.id:
            raise PermissionDenied("You cannot order your own gig.")
        return attrs

    def create(self, validated_data):
        """Create the order with the gig price as snapshot amount."""
        gig = self.context["gig_obj"]
        return Order.objects.create(
            gig=gig,
            buyer=self.context["request"].user,
            seller=gig.seller,
            amount=gig.price,
            requirements=validated_data["requirements"],
            status=Order.Status.PENDING,
        )


class DeliveryFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryFile
        fields = ["id", "url", "original_name", "uploaded_at"]


class RevisionRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = RevisionRequest
        fields = ["id", "message", "status", "requested_at", "completed_at"]
        read_only_fields = ["id", "status", "requested_at", "completed_at"]


class OrderOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a complete order representation."""

    gig = serializers.SerializerMethodField()
    buyer = serializers.SerializerMethodField()
    seller = serializers.SerializerMethodField()
    delivery_files = DeliveryFileSerializer(many=True, read_only=True)
    revision_requests = RevisionRequestSerializer(many=True, read_only=True)
    conversation = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "gig",
            "buyer",
            "seller",
            "amount",
            "status",
            "requirements",
            "delivery_message",
            "delivery_date",
            "delivery_files",
            "revision_requests",
            "completed_date",
            "cancelled_date",
            "cancelled_by",
            "cancellation_reason",
            "dispute_reason",
            "conversation",
            "created_at",
            "updated_at",
        ]

    def get_gig(self, obj):
        return {"id": obj.gig_id, "title": obj.gig.title, "slug": obj.gig.slug}

    def get_buyer(self, obj):
        return _party(obj.buyer)

    def get_seller(self, obj):
        return _party(obj.seller)

    def get_conversation(self, obj):
        conversation = getattr(obj, "conversation", None)
        return conversation.id if conversation else None


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    message = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class DeliverySerializer(serializers.Serializer):
    message = serializers.CharField(max_length=2000, required=False, allow_blank=True)


class RevisionCreateSerializer(serializers.Serializer):
    message = serializers.CharField(min_length=1, max_length=1000)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    message = serializers.CharField(max_length=2000, required=False, allow_blank=True)
