"""Order state machine.

Every status change goes through :func:`transition`, which consults the
``TRANSITIONS`` table for the caller's role relative to the order, applies the
side effects of the target state and writes everything in one transaction
with the order row locked. Completion statistics are therefore incremented
exactly once per order even under concurrent requests.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from common.exceptions import InvalidTransition
from common.uploads import (
    ATTACHMENT_EXTENSIONS,
    ATTACHMENT_MIME_TYPES,
    delete_stored,
    store_upload,
    validate_upload_batch,
)
from gigs.models import Gig
from messaging import services as messaging
from messaging.models import Message
from profiles.models import Profile
from user_auth_app.api.permissions import is_admin
from .models import DeliveryFile, Order

logger = logging.getLogger(__name__)

S = Order.Status
BUYER, SELLER, ADMIN = Order.Party.BUYER, Order.Party.SELLER, Order.Party.ADMIN
ANY_PARTY = {BUYER, SELLER, ADMIN}

# current status -> {target status: roles allowed}
TRANSITIONS = {
    S.PENDING: {
        S.ACCEPTED: {SELLER, ADMIN},
        S.CANCELLED: ANY_PARTY,
    },
    S.ACCEPTED: {
        S.IN_PROGRESS: {SELLER, ADMIN},
        S.DELIVERED: {SELLER},
        S.CANCELLED: ANY_PARTY,
        S.DISPUTED: ANY_PARTY,
    },
    S.IN_PROGRESS: {
        S.DELIVERED: {SELLER},
        S.CANCELLED: ANY_PARTY,
        S.DISPUTED: ANY_PARTY,
    },
    S.DELIVERED: {
        S.DELIVERED: {SELLER},
        S.COMPLETED: {BUYER, ADMIN},
        S.DISPUTED: ANY_PARTY,
        S.CANCELLED: {ADMIN},
    },
    S.DISPUTED: {
        S.IN_PROGRESS: {ADMIN},
        S.DELIVERED: {ADMIN},
        S.CANCELLED: {ADMIN},
    },
    S.COMPLETED: {},
    S.CANCELLED: {},
}

ACTIVE_STATUSES = (S.PENDING, S.ACCEPTED, S.IN_PROGRESS, S.DELIVERED, S.DISPUTED)

_DEFAULT_NOTES = {
    S.ACCEPTED: "Order accepted.",
    S.IN_PROGRESS: "Work on the order has started.",
    S.DELIVERED: "Order delivered.",
    S.COMPLETED: "Order completed.",
    S.CANCELLED: "Order cancelled.",
    S.DISPUTED: "Order disputed.",
}


def actor_role(order, user):
    """Return the caller's role on ``order`` or raise PermissionDenied."""
    if is_admin(user):
        return ADMIN
    if user.id == order.buyer_id:
        return BUYER
    if user.id == order.seller_id:
        return SELLER
    raise PermissionDenied("You are not a party of this order.")


def allowed_targets(order, role):
    return {target for target, roles in TRANSITIONS.get(order.status, {}).items() if role in roles}


def check_transition(current, target, role):
    if role not in TRANSITIONS.get(current, {}).get(target, set()):
        raise InvalidTransition(current, target, role)


def store_delivery_files(files, owner_id):
    files = validate_upload_batch(
        files, field="files", mime_types=ATTACHMENT_MIME_TYPES, extensions=ATTACHMENT_EXTENSIONS
    )
    return [store_upload(f, "deliveries", owner_id) for f in files]


# ---- side effects ----

def _apply_delivered(order, message, stored_files):
    order.delivery_date = timezone.now()
    if message:
        order.delivery_message = message
    for meta in stored_files or []:
        DeliveryFile.objects.create(
            order=order, url=meta["url"], filename=meta["filename"], original_name=meta["original_name"]
        )
    return ["delivery_date", "delivery_message"]


def _apply_completed(order):
    order.completed_date = timezone.now()
    Profile.objects.filter(user_id=order.seller_id).update(
        total_orders=F("total_orders") + 1,
        total_earnings=F("total_earnings") + order.amount,
    )
    Gig.objects.filter(pk=order.gig_id).update(
        total_orders=F("total_orders") + 1,
        total_earnings=F("total_earnings") + order.amount,
    )
    return ["completed_date"]


def _apply_cancelled(order, role, reason):
    order.cancelled_date = timezone.now()
    order.cancelled_by = role
    order.cancellation_reason = reason or ""
    return ["cancelled_date", "cancelled_by", "cancellation_reason"]


def _apply_disputed(order, reason):
    order.dispute_reason = reason or ""
    return ["dispute_reason"]


def _post_update(order, user, target, message):
    conversation = messaging.get_or_create_order_conversation(order)
    note = message or _DEFAULT_NOTES.get(target, f"Status changed to {target}.")
    messaging.send_message(conversation, user, note, message_type=Message.Type.ORDER_UPDATE)


# ---- entry point ----

def transition(order, user, target, message=None, reason=None, files=None, role=None):
    """Move ``order`` to ``target`` on behalf of ``user``.

    ``role`` forces the caller's role (the admin panel passes ``admin``);
    otherwise it is derived from the order. ``files`` are already validated
    uploads attached to a delivery.
    """
    role = role or actor_role(order, user)
    # fail fast before touching storage; re-checked below under the lock
    check_transition(order.status, target, role)

    stored = store_delivery_files(files, user.id) if files and target == S.DELIVERED else []

    try:
        with transaction.atomic():
            locked = Order.objects.select_for_update().get(pk=order.pk)
            current = locked.status
            check_transition(current, target, role)

            locked.status = target
            fields = ["status", "updated_at"]
            if target == S.DELIVERED:
                fields += _apply_delivered(locked, message, stored)
            elif target == S.COMPLETED:
                fields += _apply_completed(locked)
            elif target == S.CANCELLED:
                fields += _apply_cancelled(locked, role, reason)
            elif target == S.DISPUTED:
                fields += _apply_disputed(locked, reason)
            locked.save(update_fields=fields)

            _post_update(locked, user, target, message)
    except Exception:
        # stored files have no DeliveryFile row once the transaction is gone
        for meta in stored:
            delete_stored(meta["filename"])
        raise

    logger.info("Order %s %s -> %s by %s (%s)", locked.pk, current, target, user.id, role)
    return locked
