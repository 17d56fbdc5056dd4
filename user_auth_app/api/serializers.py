"""Auth API serializers.

Provides serializers for user registration, login, password change and
email-driven password reset. Registration enforces a unique email (case-insensitive) and Django's password
validators; login authenticates by email and fails with one generic message
whether the email is unknown or the password is wrong.
"""

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers
from rest_framework.authtoken.models import Token

from common.exceptions import Conflict, InvalidCredentials
from profiles.models import Profile

User = get_user_model()

INVALID_CREDENTIALS = "Invalid credentials."


class RegistrationSerializer(serializers.Serializer):
    """Validate and create a new user together with its profile."""

    name = serializers.CharField(max_length=150)
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=(Profile.Role.CLIENT, Profile.Role.FREELANCER))

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError(_("Name is required."))
        return value

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(_("Email already in use."))
        return value

    def validate(self, attrs):
        candidate = User(username=attrs["email"], email=attrs["email"], first_name=attrs["name"])
        validate_password(attrs["password"], user=candidate)
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        user = User(
            username=validated_data["email"],
            email=validated_data["email"],
            first_name=validated_data["name"],
        )
        user.set_password(validated_data["password"])
        try:
            with transaction.atomic():
                user.save()
        except IntegrityError:
            raise Conflict(_("Email already in use."))
        Profile.objects.create(user=user, role=validated_data["role"])
        return user


class LoginSerializer(serializers.Serializer):
    """Authenticate email/password and attach the user to validated data."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = attrs.get("email", "").strip().lower()
        account = User.objects.filter(email__iexact=email).only("username").first()
        user = None
        if account is not None:
            user = authenticate(username=account.username, password=attrs.get("password"))
        if not user:
            raise InvalidCredentials(INVALID_CREDENTIALS)
        attrs["user"] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate_current_password(self, value):
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError(_("Current password is incorrect."))
        return value

    def validate(self, attrs):
        validate_password(attrs["new_password"], user=self.context["request"].user)
        return attrs

    def save(self, **kwargs):
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


class PasswordResetRequestSerializer(serializers.Serializer):
    """Mail a one-time reset link to an active account with this email, if any."""

    email = serializers.EmailField()

    def save(self, **kwargs):
        email = self.validated_data["email"].strip().lower()
        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user is None:
            return None
        link = settings.PASSWORD_RESET_URL.format(
            uid=urlsafe_base64_encode(force_bytes(user.pk)),
            token=default_token_generator.make_token(user),
        )
        send_mail(
            "Reset your password",
            f"Use this link to choose a new password:\n\n{link}\n\nIf you did not ask for this, ignore this email.",
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
        )
        return user


class PasswordResetConfirmSerializer(serializers.Serializer):
    """Set a new password from a reset link and sign out every session."""

    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate(self, attrs):
        try:
            user = User.objects.get(pk=force_str(urlsafe_base64_decode(attrs["uid"])))
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            user = None
        if user is None or not default_token_generator.check_token(user, attrs["token"]):
            raise serializers.ValidationError({"token": _("Reset link is invalid or has expired.")})
        validate_password(attrs["new_password"], user=user)
        attrs["user"] = user
        return attrs

    @transaction.atomic
    def save(self, **kwargs):
        user = self.validated_data["user"]
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        Token.objects.filter(user=user).delete()
        return user


class AuthUserSerializer(serializers.ModelSerializer):
    """Compact user representation returned by the auth endpoints."""

    name = serializers.CharField(source="first_name", read_only=True)
    role = serializers.CharField(source="profile.role", read_only=True, default="")
    profile_picture = serializers.CharField(source="profile.profile_picture", read_only=True, default="")

    class Meta:
        model = User
        fields = ["id", "name", "email", "role", "profile_picture", "date_joined"]
