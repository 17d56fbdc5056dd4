from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

User = get_user_model()

try:
    admin.site.unregister(User)
except admin.sites.NotRegistered:
    pass


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """
    User list with id, marketplace role, suspension and admin flags.
    """
    list_display = (
        "id",
        "email",
        "first_name",
        "role_display",
        "suspended_display",
        "is_staff",
        "is_active",
        "date_joined",
        "last_login",
    )
    list_select_related = ("profile",)
    ordering = ("-date_joined", "-id")
    search_fields = ("email", "first_name", "profile__role")
    list_filter = ("is_staff", "is_active", "profile__role", "profile__is_suspended")

    def role_display(self, obj):
        prof = getattr(obj, "profile", None)
        return getattr(prof, "role", "") or ""
    role_display.short_description = "role"
    role_display.admin_order_field = "profile__role"

    def suspended_display(self, obj):
        prof = getattr(obj, "profile", None)
        return bool(getattr(prof, "is_suspended", False))
    suspended_display.short_description = "suspended"
    suspended_display.boolean = True
