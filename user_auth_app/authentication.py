"""Token authentication for HTTP requests and websocket connections.

A session token is a DRF ``Token`` row. It is accepted from the
``Authorization`` header (``Token <key>`` or ``Bearer <key>``) or from the
HTTP-only ``token`` cookie, expires after ``AUTH_TOKEN_TTL_HOURS`` and only
resolves to active, non-suspended users.
"""

from datetime import timedelta
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.utils import timezone
from rest_framework import exceptions
from rest_framework.authentication import TokenAuthentication, get_authorization_header
from rest_framework.authtoken.models import Token


def token_expired(token) -> bool:
    ttl = timedelta(hours=getattr(settings, "AUTH_TOKEN_TTL_HOURS", 24))
    return token.created < timezone.now() - ttl


def issue_token(user):
    """Return the user's live token, replacing it when it has expired."""
    token, created = Token.objects.get_or_create(user=user)
    if not created and token_expired(token):
        token.delete()
        token = Token.objects.create(user=user)
    return token


def resolve_token(key):
    """Return the user behind ``key`` or raise AuthenticationFailed."""
    try:
        token = Token.objects.select_related("user", "user__profile").get(key=key)
    except Token.DoesNotExist:
        raise exceptions.AuthenticationFailed("Invalid token.")

    if token_expired(token):
        raise exceptions.AuthenticationFailed("Token has expired.")

    user = token.user
    if not user.is_active:
        raise exceptions.AuthenticationFailed("Account is deactivated.")
    profile = getattr(user, "profile", None)
    if profile is not None and profile.is_suspended:
        raise exceptions.AuthenticationFailed("Account is suspended.")
    return user, token


class ExpiringTokenAuthentication(TokenAuthentication):
    """Header token authentication accepting both ``Token`` and ``Bearer``."""

    keywords = ("token", "bearer")

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower().decode() not in self.keywords:
            return None

        if len(auth) == 1:
            raise exceptions.AuthenticationFailed("Invalid token header. No credentials provided.")
        if len(auth) > 2:
            raise exceptions.AuthenticationFailed("Invalid token header. Token string should not contain spaces.")

        try:
            key = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid token header.")
        return self.authenticate_credentials(key)

    def authenticate_credentials(self, key):
        return resolve_token(key)


class CookieTokenAuthentication(ExpiringTokenAuthentication):
    """Reads the session token from the HTTP-only cookie set at login."""

    def authenticate(self, request):
        key = request.COOKIES.get(getattr(settings, "AUTH_COOKIE_NAME", "token"))
        if not key:
            return None
        return self.authenticate_credentials(key)


def set_token_cookie(response, token):
    response.set_cookie(
        getattr(settings, "AUTH_COOKIE_NAME", "token"),
        token.key,
        max_age=getattr(settings, "AUTH_TOKEN_TTL_HOURS", 24) * 3600,
        httponly=True,
        secure=getattr(settings, "AUTH_COOKIE_SECURE", False),
        samesite="Lax",
    )
    return response


def clear_token_cookie(response):
    response.delete_cookie(getattr(settings, "AUTH_COOKIE_NAME", "token"), samesite="Lax")
    return response


@database_sync_to_async
def _user_for_key(key):
    try:
        user, _ = resolve_token(key)
    except exceptions.AuthenticationFailed:
        return AnonymousUser()
    return user


class TokenAuthMiddleware(BaseMiddleware):
    """Channels middleware: resolves ``?token=`` or the token cookie into ``scope['user']``."""

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get("query_string", b"").decode())
        key = (query.get("token") or [None])[0]
        if not key:
            key = _cookie_value(scope, getattr(settings, "AUTH_COOKIE_NAME", "token"))
        scope["user"] = await _user_for_key(key) if key else AnonymousUser()
        return await super().__call__(scope, receive, send)


def _cookie_value(scope, name):
    for header, value in scope.get("headers", []):
        if header == b"cookie":
            for part in value.decode().split(";"):
                k, _, v = part.strip().partition("=")
                if k == name:
                    return v
    return None
