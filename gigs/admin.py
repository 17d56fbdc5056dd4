from django.contrib import admin
from .models import Gig, GigImage


class GigImageInline(admin.TabularInline):
    """
    Shows the images of a gig inside the gig form.
    """
    model = GigImage
    extra = 0
    fields = ("position", "url", "original_name", "mimetype", "size", "is_primary")
    readonly_fields = ("url", "original_name", "mimetype", "size")


@admin.register(Gig)
class GigAdmin(admin.ModelAdmin):
    """
    Gig management:
    - inline images
    - search and filter by status and category
    - stats read-only
    """
    inlines = [GigImageInline]

    list_display = (
        "id",
        "title",
        "seller_email",
        "category",
        "status",
        "price",
        "rating",
        "total_orders",
        "updated_at",
    )
    list_select_related = ("seller",)
    search_fields = ("title", "description", "seller__email", "seller__first_name")
    list_filter = ("status", "category", "updated_at")
    date_hierarchy = "created_at"
    ordering = ("-updated_at", "-id")
    readonly_fields = (
        "slug",
        "rating",
        "total_reviews",
        "total_orders",
        "total_earnings",
        "total_views",
        "approved_by",
        "approved_at",
        "created_at",
        "updated_at",
    )
    autocomplete_fields = ("seller",)

    def seller_email(self, obj):
        return obj.seller.email if obj.seller_id else ""
    seller_email.short_description = "seller"
