"""Auth API permissions.

Role helpers shared by every app. A role check is a set-membership test on
``profile.role``; an admin (role ``admin`` or Django staff) bypasses every
ownership check.
"""

from rest_framework.permissions import AllowAny, BasePermission


def get_role(user) -> str:
    """Return the marketplace role of ``user`` or an empty string."""
    if not user or not user.is_authenticated:
        return ""
    profile = getattr(user, "profile", None)
    return getattr(profile, "role", "") if profile else ""


def is_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return bool(user.is_staff or get_role(user) == "admin")


def is_owner_or_admin(user, owner_id) -> bool:
    return is_admin(user) or (user.is_authenticated and owner_id == user.id)


class AllowAnyRegistration(AllowAny):
    """Explicit alias for registration endpoints (semantics: allow any)."""
    pass


class AllowedAnyLogin(AllowAny):
    """Explicit alias for login endpoints (semantics: allow any)."""
    pass


class HasRole(BasePermission):
    """Grant access to authenticated users whose role is in ``roles``.

    Use through :func:`role_required`, e.g. ``role_required("freelancer")``.
    Admins always pass.
    """

    roles = ()

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if is_admin(user):
            return True
        return get_role(user) in self.roles


def role_required(*roles):
    """Build a HasRole subclass for the given roles."""
    label = " or ".join(roles)
    return type(
        f"Has{''.join(r.title() for r in roles)}Role",
        (HasRole,),
        {"roles": tuple(roles), "message": f"Only users with role '{label}' may do this."},
    )


class IsAdminRole(BasePermission):
    """Allow access only to admins (role 'admin' or Django staff)."""

    message = "Admin access required."

    def has_permission(self, request, view):
        return is_admin(request.user)
