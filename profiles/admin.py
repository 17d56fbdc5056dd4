from django.contrib import admin
from .models import Profile

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """
    Profile list with role, stats and moderation flags.
    """
    list_display = (
        "id",
        "user_id_display",
        "user",
        "role",
        "total_orders",
        "total_earnings",
        "average_rating",
        "is_suspended",
        "created_at",
    )
    list_select_related = ("user",)
    search_fields = ("user__email", "user__first_name", "role")
    list_filter = ("role", "is_suspended", "created_at")
    ordering = ("-created_at", "-id")
    autocomplete_fields = ("user",)
    readonly_fields = ("created_at", "total_orders", "total_earnings", "average_rating", "total_reviews")

    def user_id_display(self, obj):
        return obj.user_id
    user_id_display.short_description = "user id"
    user_id_display.admin_order_field = "user__id"
