from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "gig", "reviewer", "reviewee", "rating", "status", "reported", "created_at")
    list_filter = ("status", "reported", "rating")
    search_fields = ("comment", "reviewer__email", "reviewee__email", "gig__title")
    list_select_related = ("gig", "reviewer", "reviewee")
    readonly_fields = (
        "order",
        "gig",
        "reviewer",
        "reviewee",
        "moderated_by",
        "moderated_at",
        "admin_response_by",
        "admin_response_at",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at", "-id")
