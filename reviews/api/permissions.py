"""Reviews API permissions."""

from rest_framework.permissions import BasePermission


class IsReviewAuthor(BasePermission):
    """Allow modifications or deletion only by the reviewer."""

    message = "Only the author may modify this review."

    def has_object_permission(self, request, view, obj):
        user = request.user
        return bool(user and user.is_authenticated and obj.reviewer_id == user.id)
