"""Gigs API permissions.

Contains object-level permissions used by gig endpoints. Creating gigs is
limited to freelancers through ``role_required("freelancer")``.
"""

from rest_framework.permissions import BasePermission

from user_auth_app.api.permissions import is_owner_or_admin


class IsGigOwnerOrAdmin(BasePermission):
    """Allow modifications only for the seller of the gig or an admin.

    Note: Read permissions (e.g., GET on detail) are handled separately by the view.
    """

    message = "Only the gig owner can modify this gig."

    def has_object_permission(self, request, view, obj):
        return is_owner_or_admin(request.user, obj.seller_id)
