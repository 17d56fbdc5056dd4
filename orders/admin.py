from django.contrib import admin
from django.utils.html import format_html
from .models import DeliveryFile, Order, RevisionRequest


class DeliveryFileInline(admin.TabularInline):
    model = DeliveryFile
    extra = 0
    readonly_fields = ("url", "original_name", "uploaded_at")
    fields = readonly_fields


class RevisionRequestInline(admin.TabularInline):
    model = RevisionRequest
    extra = 0
    readonly_fields = ("message", "status", "requested_at", "completed_at")
    fields = readonly_fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Order overview:
    - list: id, gig, status badge, buyer, seller, amount, created
    - every field is read-only; status changes go through the API so the
      lifecycle rules and completion stats stay consistent
    """
    inlines = [DeliveryFileInline, RevisionRequestInline]
    list_display = (
        "id",
        "gig",
        "status_badge",
        "buyer_email",
        "seller_email",
        "amount",
        "created_at",
        "updated_at",
    )
    list_select_related = ("gig", "buyer", "seller")
    list_filter = ("status", "created_at")
    date_hierarchy = "created_at"
    ordering = ("-created_at", "-id")
    search_fields = ("gig__title", "buyer__email", "seller__email")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def status_badge(self, obj):
        color = {
            "pending": "#9ca3af",
            "accepted": "#6366f1",
            "in_progress": "#0ea5e9",
            "delivered": "#f59e0b",
            "completed": "#22c55e",
            "cancelled": "#ef4444",
            "disputed": "#a855f7",
        }.get(obj.status, "#9ca3af")
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            color,
            obj.status,
        )
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"

    def buyer_email(self, obj):
        return obj.buyer.email if obj.buyer_id else ""
    buyer_email.short_description = "buyer"

    def seller_email(self, obj):
        return obj.seller.email if obj.seller_id else ""
    seller_email.short_description = "seller"
