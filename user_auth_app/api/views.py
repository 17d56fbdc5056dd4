"""Auth API views.

Implements token-based registration, login and logout, plus password change
and reset. The token is returned
in the response body and also set as an HTTP-only cookie so browser clients
never need to store it themselves.
"""

import logging

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from user_auth_app.authentication import clear_token_cookie, issue_token, set_token_cookie
from .permissions import AllowAnyRegistration, AllowedAnyLogin
from .serializers import (
    AuthUserSerializer,
    ChangePasswordSerializer,
    LoginSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    RegistrationSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def _token_response(user, token, status_code):
    data = {"token": token.key, "user": AuthUserSerializer(user).data}
    return set_token_cookie(Response(data, status=status_code), token)


class RegistrationView(APIView):
    """POST /api/auth/register/ -> create user and profile, return auth token."""

    permission_classes = [AllowAnyRegistration]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request, *args, **kwargs):
        serializer = RegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.save()
        logger.info("Registered user %s as %s", user.id, user.profile.role)
        return _token_response(user, issue_token(user), status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST /api/auth/login/ -> validate credentials and return auth token."""

    permission_classes = [AllowedAnyLogin]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.validated_data["user"]
        profile = getattr(user, "profile", None)
        if profile is not None and profile.is_suspended:
            return Response({"detail": "Account is suspended."}, status=status.HTTP_403_FORBIDDEN)

        return _token_response(user, issue_token(user), status.HTTP_200_OK)


class LogoutView(APIView):
    """POST /api/auth/logout/ -> delete the caller's token and clear the cookie."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        if request.auth is not None:
            request.auth.delete()
        return clear_token_cookie(Response({"detail": "Logged out."}, status=status.HTTP_200_OK))


class MeView(APIView):
    """GET /api/auth/me/ -> the authenticated user."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(AuthUserSerializer(request.user).data, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """POST /api/auth/change-password/ -> verify the current password and set a new one."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ChangePasswordSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "Password updated."}, status=status.HTTP_200_OK)


class PasswordResetRequestView(APIView):
    """POST /api/auth/password-reset/ -> mail a reset link; the answer never reveals whether the email exists."""

    permission_classes = [AllowedAnyLogin]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request, *args, **kwargs):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        if user is not None:
            logger.info("Password reset mailed to user %s", user.id)
        return Response(
            {"detail": "If an account exists for this email, a reset link has been sent."},
            status=status.HTTP_200_OK,
        )


class PasswordResetConfirmView(APIView):
    """POST /api/auth/password-reset/confirm/ -> set a new password from a reset link."""

    permission_classes = [AllowedAnyLogin]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request, *args, **kwargs):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Password reset completed for user %s", user.id)
        return Response({"detail": "Password has been reset."}, status=status.HTTP_200_OK)
