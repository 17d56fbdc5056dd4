"""Best-effort pushes to connected websocket clients.

Every push is queued with ``transaction.on_commit`` so clients never see data
that is rolled back afterwards. Group membership in the channel layer is the
registry of who is connected: ``user_<id>`` for every socket of a user,
``conversation_<id>`` and ``order_<id>`` for sockets that joined a thread.
A failing push is logged and never propagates to the HTTP request.

A socket can sit in several groups that receive the same event. Each copy
carries the group it was sent to and the ordered ``route`` of all target
groups; a socket delivers only the copy sent to the first route group it
has joined, so every event reaches each socket once.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


def conversation_group(conversation_id):
    return f"conversation_{conversation_id}"


def order_group(order_id):
    return f"order_{order_id}"


def _send(groups, event, data):
    layer = get_channel_layer()
    if layer is None:
        return
    for group in groups:
        payload = {"type": "broadcast", "event": event, "data": data, "group": group, "route": groups}
        try:
            async_to_sync(layer.group_send)(group, payload)
        except Exception:
            logger.exception("Realtime push %s to %s failed", event, group)


def push(groups, event, data):
    """Send ``event`` to ``groups`` once the current transaction commits."""
    groups = list(dict.fromkeys(groups))
    transaction.on_commit(lambda: _send(groups, event, data))


def _thread_groups(conversation):
    groups = [conversation_group(conversation.id)]
    if conversation.order_id:
        groups.append(order_group(conversation.order_id))
    return groups


def message_created(conversation, message_data, recipient_ids):
    groups = _thread_groups(conversation) + [user_group(uid) for uid in recipient_ids]
    push(groups, "newMessage", message_data)


def messages_read(conversation, reader_id, message_ids):
    push(
        _thread_groups(conversation),
        "messagesRead",
        {
            "conversation_id": conversation.id,
            "order_id": conversation.order_id,
            "reader_id": reader_id,
            "message_ids": list(message_ids),
        },
    )
