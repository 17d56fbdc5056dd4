"""Websocket consumer for live messaging.

Client frames are JSON objects ``{"event": <name>, "data": {...}}``:
``joinOrder``, ``leaveOrder``, ``joinConversation``, ``leaveConversation``
and ``typing``. Server frames use the same shape with the events
``newMessage``, ``messagesRead``, ``userTyping`` and ``error``.
"""

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from rest_framework.exceptions import PermissionDenied

from orders.models import Order
from user_auth_app.api.permissions import is_admin
from . import realtime, services
from .models import Conversation

logger = logging.getLogger(__name__)

UNAUTHENTICATED = 4001


@database_sync_to_async
def _can_join_order(user, order_id):
    order = Order.objects.filter(pk=order_id).only("buyer_id", "seller_id").first()
    if order is None:
        return False
    return user.id in (order.buyer_id, order.seller_id) or is_admin(user)


@database_sync_to_async
def _can_join_conversation(user, conversation_id):
    conversation = Conversation.objects.filter(pk=conversation_id).first()
    if conversation is None:
        return False
    try:
        services.ensure_can_access(conversation, user)
    except PermissionDenied:
        return False
    return True


def _as_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class MessagingConsumer(AsyncJsonWebsocketConsumer):
    async def connect(self):
        self.user = self.scope.get("user")
        if self.user is None or not self.user.is_authenticated:
            await self.close(code=UNAUTHENTICATED)
            return
        self.groups_joined = set()
        await self._join(realtime.user_group(self.user.id))
        await self.accept()
        logger.debug("User %s connected on %s", self.user.id, self.channel_name)

    async def disconnect(self, close_code):
        for group in getattr(self, "groups_joined", set()):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self._error("Frames must be JSON objects.")
            return
        event = content.get("event")
        data = content.get("data") or {}
        handler = {
            "joinOrder": self._on_join_order,
            "leaveOrder": self._on_leave_order,
            "joinConversation": self._on_join_conversation,
            "leaveConversation": self._on_leave_conversation,
            "typing": self._on_typing,
        }.get(event)
        if handler is None:
            await self._error(f"Unknown event '{event}'.")
            return
        await handler(data)

    # ---- client events ----

    async def _on_join_order(self, data):
        order_id = _as_id(data.get("order_id"))
        if order_id is None or not await _can_join_order(self.user, order_id):
            await self._error("Cannot join this order.")
            return
        await self._join(realtime.order_group(order_id))

    async def _on_leave_order(self, data):
        order_id = _as_id(data.get("order_id"))
        if order_id is not None:
            await self._leave(realtime.order_group(order_id))

    async def _on_join_conversation(self, data):
        conversation_id = _as_id(data.get("conversation_id"))
        if conversation_id is None or not await _can_join_conversation(self.user, conversation_id):
            await self._error("Cannot join this conversation.")
            return
        await self._join(realtime.conversation_group(conversation_id))

    async def _on_leave_conversation(self, data):
        conversation_id = _as_id(data.get("conversation_id"))
        if conversation_id is not None:
            await self._leave(realtime.conversation_group(conversation_id))

    async def _on_typing(self, data):
        conversation_id = _as_id(data.get("conversation_id"))
        order_id = _as_id(data.get("order_id"))
        if conversation_id is not None:
            group = realtime.conversation_group(conversation_id)
        elif order_id is not None:
            group = realtime.order_group(order_id)
        else:
            await self._error("typing needs conversation_id or order_id.")
            return
        if group not in self.groups_joined:
            await self._error("Join the thread before sending typing events.")
            return
        await self.channel_layer.group_send(
            group,
            {
                "type": "typing",
                "sender_channel": self.channel_name,
                "data": {
                    "user_id": self.user.id,
                    "conversation_id": conversation_id,
                    "order_id": order_id,
                    "is_typing": bool(data.get("is_typing")),
                },
            },
        )

    # ---- channel layer handlers ----

    async def broadcast(self, event):
        route = event.get("route")
        if route:
            first = next((g for g in route if g in self.groups_joined), None)
            if first != event.get("group"):
                return
        await self.send_json({"event": event["event"], "data": event["data"]})

    async def typing(self, event):
        if event["sender_channel"] != self.channel_name:
            await self.send_json({"event": "userTyping", "data": event["data"]})

    # ---- helpers ----

    async def _join(self, group):
        await self.channel_layer.group_add(group, self.channel_name)
        self.groups_joined.add(group)

    async def _leave(self, group):
        await self.channel_layer.group_discard(group, self.channel_name)
        self.groups_joined.discard(group)

    async def _error(self, detail):
        await self.send_json({"event": "error", "data": {"detail": detail}})
