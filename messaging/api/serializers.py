"""Messaging API serializers."""

from rest_framework import serializers

from ..models import Conversation, Message


def _user_card(user):
    profile = getattr(user, "profile", None)
    return {
        "id": user.id,
        "name": user.first_name or "",
        "profile_picture": getattr(profile, "profile_picture", "") or "",
    }


class MessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.CharField(source="sender.first_name", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "sender",
            "sender_name",
            "content",
            "message_type",
            "attachments",
            "read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=2000)
    message_type = serializers.ChoiceField(
        choices=[Message.Type.TEXT, Message.Type.IMAGE, Message.Type.FILE],
        default=Message.Type.TEXT,
    )


class ConversationSerializer(serializers.ModelSerializer):
    """Conversation as seen by the requesting user (``unread_count`` is theirs)."""

    participants = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "order",
            "gig",
            "status",
            "participants",
            "last_message",
            "last_message_at",
            "unread_count",
            "created_at",
        ]

    def get_participants(self, obj):
        return [_user_card(u) for u in obj.participants.all()]

    def get_last_message(self, obj):
        msg = obj.last_message
        if msg is None:
            return None
        return {"id": msg.id, "sender": msg.sender_id, "content": msg.content[:100], "created_at": msg.created_at}

    def get_unread_count(self, obj):
        annotated = getattr(obj, "_unread", None)
        if annotated is not None:
            return annotated
        request = self.context.get("request")
        if request is None:
            return 0
        membership = obj.memberships.filter(user_id=request.user.id).first()
        return membership.unread_count if membership else 0


class ConversationCreateSerializer(serializers.Serializer):
    participant_id = serializers.IntegerField()
    order_id = serializers.IntegerField(required=False)
    gig_id = serializers.IntegerField(required=False)


class ConversationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Conversation.Status.choices)
