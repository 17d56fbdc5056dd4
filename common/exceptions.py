"""Typed API errors and the project-wide DRF exception handler.

The handler keeps DRF's own mapping for validation (400), authentication
(401), permission (403) and not-found (404) errors, maps state conflicts and
protected deletes to 400, and turns anything unexpected into a generic 500
whose detail is only written to the server log.
"""

import logging

from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """A uniqueness or state conflict (duplicate review, duplicate email, ...)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class InvalidTransition(Conflict):
    """A status change that the lifecycle table does not allow."""

    default_detail = "This status change is not allowed."
    default_code = "invalid_transition"

    def __init__(self, current, target, role=None):
        if role:
            detail = f"Cannot move from '{current}' to '{target}' as {role}."
        else:
            detail = f"Cannot move from '{current}' to '{target}'."
        super().__init__(detail=detail)
        self.current = current
        self.target = target


class InvalidCredentials(APIException):
    """Login failure; the same message for unknown email and wrong password."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid credentials."
    default_code = "invalid_credentials"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    if response is not None:
        if isinstance(exc, Conflict) and isinstance(response.data, dict):
            response.data.setdefault("code", exc.get_codes())
        return response

    if isinstance(exc, ProtectedError):
        return Response(
            {"detail": "This record is still referenced and cannot be deleted."},
            status=status.HTTP_400_BAD_REQUEST,
        )

    logger.exception("Unhandled error in %s", view_name, exc_info=exc)
    return Response(
        {"detail": "Internal Server Error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
