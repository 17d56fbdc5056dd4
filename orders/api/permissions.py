"""Orders API permissions.

Contains object- and request-level permission classes used by the orders
endpoints.
"""

from rest_framework.permissions import BasePermission

from user_auth_app.api.permissions import is_admin


class IsOrderParty(BasePermission):
    """Allows access to the buyer, the seller or an admin."""

    message = "You are not a party of this order."

    def has_object_permission(self, request, view, obj):
        user = request.user
        return user.id in (obj.buyer_id, obj.seller_id) or is_admin(user)


class IsOrderBuyer(BasePermission):
    message = "Only the buyer of this order may do this."

    def has_object_permission(self, request, view, obj):
        return obj.buyer_id == request.user.id


class IsOrderSeller(BasePermission):
    message = "Only the seller of this order may do this."

    def has_object_permission(self, request, view, obj):
        return obj.seller_id == request.user.id
