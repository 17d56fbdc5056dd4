"""Admin panel serializers."""

from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import serializers

from gigs.api.serializers import GigDetailSerializer
from gigs.models import Gig
from orders.models import Order
from profiles.models import Profile
from reviews.models import Review

User = get_user_model()


class AdminUserSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="first_name", read_only=True)
    role = serializers.CharField(source="profile.role", read_only=True, default="")
    is_suspended = serializers.BooleanField(source="profile.is_suspended", read_only=True, default=False)
    suspension_reason = serializers.CharField(source="profile.suspension_reason", read_only=True, default="")

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "role",
            "is_active",
            "is_suspended",
            "suspension_reason",
            "date_joined",
            "last_login",
        ]


class AdminUserUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Profile.Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)
    is_suspended = serializers.BooleanField(required=False)
    suspension_reason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def update(self, user, validated_data):
        profile, _ = Profile.objects.get_or_create(user=user)
        if "is_active" in validated_data:
            user.is_active = validated_data["is_active"]
            user.save(update_fields=["is_active"])
        for attr in ("role", "is_suspended", "suspension_reason"):
            if attr in validated_data:
                setattr(profile, attr, validated_data[attr])
        if validated_data.get("is_suspended") is False:
            profile.suspension_reason = ""
        profile.save()
        return user


class AdminGigSerializer(serializers.ModelSerializer):
    seller_email = serializers.CharField(source="seller.email", read_only=True)

    class Meta:
        model = Gig
        fields = [
            "id",
            "title",
            "slug",
            "seller",
            "seller_email",
            "category",
            "price",
            "status",
            "rejection_reason",
            "approved_by",
            "approved_at",
            "total_orders",
            "rating",
            "created_at",
            "updated_at",
        ]


class AdminGigStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[Gig.Status.ACTIVE, Gig.Status.PAUSED, Gig.Status.REJECTED])
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs["status"] == Gig.Status.REJECTED and not attrs.get("reason", "").strip():
            raise serializers.ValidationError({"reason": "A reason is required when rejecting a gig."})
        return attrs


class RejectReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


RECENT_LIMIT = 5


class AdminUserDetailSerializer(AdminUserSerializer):
    """A user with counters and the latest gigs, orders and reviews they took part in."""

    counts = serializers.SerializerMethodField()
    recent_gigs = serializers.SerializerMethodField()
    recent_orders = serializers.SerializerMethodField()
    recent_reviews = serializers.SerializerMethodField()

    class Meta(AdminUserSerializer.Meta):
        fields = AdminUserSerializer.Meta.fields + ["counts", "recent_gigs", "recent_orders", "recent_reviews"]

    @staticmethod
    def _orders(user):
        return Order.objects.filter(Q(buyer=user) | Q(seller=user))

    @staticmethod
    def _reviews(user):
        return Review.objects.filter(Q(reviewer=user) | Q(reviewee=user))

    def get_counts(self, user):
        return {
            "gigs": Gig.objects.filter(seller=user).count(),
            "orders": self._orders(user).count(),
            "reviews": self._reviews(user).count(),
        }

    def get_recent_gigs(self, user):
        gigs = Gig.objects.filter(seller=user).order_by("-created_at", "-id")[:RECENT_LIMIT]
        return [
            {"id": g.id, "title": g.title, "price": str(g.price), "status": g.status, "created_at": g.created_at}
            for g in gigs
        ]

    def get_recent_orders(self, user):
        orders = self._orders(user).select_related("gig").order_by("-created_at", "-id")[:RECENT_LIMIT]
        return [
            {
                "id": o.id,
                "gig": {"id": o.gig_id, "title": o.gig.title},
                "role": "buyer" if o.buyer_id == user.id else "seller",
                "amount": str(o.amount),
                "status": o.status,
                "created_at": o.created_at,
            }
            for o in orders
        ]

    def get_recent_reviews(self, user):
        reviews = self._reviews(user).select_related("gig").order_by("-created_at", "-id")[:RECENT_LIMIT]
        return [
            {
                "id": r.id,
                "gig": {"id": r.gig_id, "title": r.gig.title},
                "written": r.reviewer_id == user.id,
                "rating": r.rating,
                "comment": r.comment,
                "status": r.status,
                "created_at": r.created_at,
            }
            for r in reviews
        ]


class AdminGigDetailSerializer(GigDetailSerializer):
    """Full gig payload plus the moderation stamp."""

    class Meta(GigDetailSerializer.Meta):
        fields = GigDetailSerializer.Meta.fields + ["approved_by"]


class AdminResponseSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=1000)
