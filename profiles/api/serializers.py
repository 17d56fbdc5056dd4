"""Profiles API serializers.

Contains serializers for:
- reading a profile,
- partially updating a profile (owner-only),
- listing freelancer and client profiles.

Role, stats and moderation flags are read-only here: the role is chosen at
registration (or changed by an admin) and the stats only move through order
completion and review moderation.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from common.uploads import is_uploaded_file, store_upload, validate_upload
from ..models import Profile

User = get_user_model()


# ------------------------------ helpers ------------------------------

def _abs_url(request, relative_url: str) -> str:
    if not relative_url:
        return ""
    return request.build_absolute_uri(relative_url) if request else relative_url


def _save_picture_and_get_url(request, file_obj) -> str:
    """Store uploaded image and return absolute URL (image types, ≤5MB)."""
    validate_upload(file_obj, field="profile_picture")
    stored = store_upload(file_obj, "avatars", request.user.id)
    return _abs_url(request, stored["url"])


def _coalesce_fields(data: dict, keys: set):
    for k in keys:
        if data.get(k) is None:
            data[k] = ""


def _ensure_str_list(value, field):
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise serializers.ValidationError({field: "Must be an array of strings."})
    return [x.strip() for x in value if x.strip()]


# ------------------------------ custom field ------------------------------

class FileOrURLField(serializers.Field):
    """
    Accepts EITHER an UploadedFile (multipart) OR a string URL (JSON).
    Representation is always a (possibly empty) string.
    """

    def to_internal_value(self, data):
        if is_uploaded_file(data):
            return data
        if data in (None, ""):
            return ""
        if isinstance(data, str):
            return data
        raise serializers.ValidationError(
            "profile_picture must be an uploaded image or a string URL."
        )

    def to_representation(self, value):
        return value or ""


# ------------------------------ serializers ------------------------------

_PROFILE_FIELDS = [
    "user",
    "name",
    "email",
    "role",
    "profile_picture",
    "bio",
    "location",
    "phone",
    "website",
    "skills",
    "hourly_rate",
    "total_earnings",
    "total_orders",
    "average_rating",
    "total_reviews",
    "created_at",
]


class ProfilePatchSerializer(serializers.ModelSerializer):
    """
    Partial update of the caller's own profile.
    `profile_picture` accepts a multipart upload OR a URL string.
    """

    profile_picture = FileOrURLField(required=False)
    name = serializers.CharField(source="user.first_name", required=False, max_length=150)
    email = serializers.EmailField(source="user.email", read_only=True)
    skills = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Profile
        fields = _PROFILE_FIELDS
        read_only_fields = [
            "user",
            "email",
            "role",
            "total_earnings",
            "total_orders",
            "average_rating",
            "total_reviews",
            "created_at",
        ]
        extra_kwargs = {
            "bio": {"required": False, "allow_blank": True},
            "location": {"required": False, "allow_blank": True},
            "phone": {"required": False, "allow_blank": True},
            "website": {"required": False, "allow_blank": True},
            "hourly_rate": {"required": False, "min_value": 5},
        }

    def validate_skills(self, value):
        return _ensure_str_list(value, "skills")

    def update(self, instance: Profile, validated_data):
        """Handle the nested user name, picture upload/string and plain fields."""
        request = self.context.get("request")
        user_data = validated_data.pop("user", {})
        if "first_name" in user_data:
            instance.user.first_name = user_data["first_name"].strip()
            instance.user.save(update_fields=["first_name"])

        if "profile_picture" in validated_data:
            incoming = validated_data.pop("profile_picture")
            instance.profile_picture = (
                _save_picture_and_get_url(request, incoming)
                if is_uploaded_file(incoming)
                else (incoming or "")
            )

        for attr, val in validated_data.items():
            setattr(instance, attr, val)
        instance.save()
        return instance

    _no_null = {"name", "bio", "location", "phone", "website", "profile_picture"}

    def to_representation(self, instance: Profile):
        data = super().to_representation(instance)
        _coalesce_fields(data, self._no_null)
        return data


class ProfileDetailSerializer(serializers.ModelSerializer):
    """Read-only detail serializer (coalesces selected string fields to '')."""

    name = serializers.CharField(source="user.first_name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Profile
        fields = _PROFILE_FIELDS
        read_only_fields = fields

    _no_null = {"name", "bio", "location", "phone", "website", "profile_picture"}

    def to_representation(self, instance: Profile):
        data = super().to_representation(instance)
        _coalesce_fields(data, self._no_null)
        return data


class FreelancerProfileListSerializer(serializers.ModelSerializer):
    """List serializer for freelancer profiles including their public stats."""

    name = serializers.CharField(source="user.first_name", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "user",
            "name",
            "profile_picture",
            "bio",
            "location",
            "skills",
            "hourly_rate",
            "total_orders",
            "average_rating",
            "total_reviews",
        ]


class ClientProfileListSerializer(serializers.ModelSerializer):
    """List serializer for client profiles with `joined_at` alias."""

    name = serializers.CharField(source="user.first_name", read_only=True)
    joined_at = serializers.DateTimeField(
        source="created_at", read_only=True, format="%Y-%m-%dT%H:%M:%S"
    )

    class Meta:
        model = Profile
        fields = ["user", "name", "profile_picture", "location", "joined_at"]
