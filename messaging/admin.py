from django.contrib import admin
from .models import Conversation, ConversationParticipant, Message


class ParticipantInline(admin.TabularInline):
    model = ConversationParticipant
    extra = 0
    fields = ("user", "unread_count", "last_read_at")
    readonly_fields = ("unread_count", "last_read_at")
    autocomplete_fields = ("user",)


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """
    Threads with their participants; order threads link to the order.
    """
    inlines = [ParticipantInline]
    list_display = ("id", "order", "gig", "status", "last_message_at", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("memberships__user__email",)
    ordering = ("-last_message_at", "-id")
    readonly_fields = ("last_message", "last_message_at", "created_at", "updated_at")
    raw_id_fields = ("order", "gig", "blocked_by")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "conversation", "sender", "message_type", "read", "created_at")
    list_select_related = ("sender",)
    list_filter = ("message_type", "read", "created_at")
    search_fields = ("content", "sender__email")
    ordering = ("-created_at", "-id")
    raw_id_fields = ("conversation", "sender")
