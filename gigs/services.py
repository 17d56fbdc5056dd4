"""Gig image handling and status changes.

Image rows and the primary flag are always changed inside one transaction with
the gig row locked, so concurrent uploads cannot produce two primary images.
Stored files are only removed after the surrounding transaction commits.
"""

import logging

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from common.exceptions import InvalidTransition
from common.uploads import delete_stored, store_upload
from .models import Gig, GigImage

logger = logging.getLogger(__name__)

# Status moves a gig owner may make; admins may set any status.
OWNER_TRANSITIONS = {
    Gig.Status.DRAFT: {Gig.Status.PENDING},
    Gig.Status.PENDING: {Gig.Status.DRAFT},
    Gig.Status.ACTIVE: {Gig.Status.PAUSED},
    Gig.Status.PAUSED: {Gig.Status.ACTIVE},
    Gig.Status.REJECTED: {Gig.Status.DRAFT},
}


def _lock(gig):
    return Gig.objects.select_for_update().get(pk=gig.pk)


@transaction.atomic
def add_images(gig, files):
    """Store validated ``files`` and append them to ``gig``.

    The first image a gig ever gets becomes primary.
    """
    _lock(gig)
    has_primary = gig.images.filter(is_primary=True).exists()
    last = gig.images.aggregate(m=Max("position"))["m"]
    position = 0 if last is None else last + 1

    created = []
    for f in files:
        stored = store_upload(f, "gigs", gig.seller_id)
        created.append(
            GigImage.objects.create(
                gig=gig,
                url=stored["url"],
                filename=stored["filename"],
                original_name=stored["original_name"],
                size=stored["size"],
                mimetype=stored["mimetype"],
                is_primary=not has_primary,
                position=position,
            )
        )
        has_primary = True
        position += 1
    logger.info("Added %s image(s) to gig %s", len(created), gig.pk)
    return created


@transaction.atomic
def set_primary_image(gig, image):
    _lock(gig)
    gig.images.filter(is_primary=True).exclude(pk=image.pk).update(is_primary=False)
    if not image.is_primary:
        image.is_primary = True
        image.save(update_fields=["is_primary"])
    return image


@transaction.atomic
def remove_image(gig, image):
    """Delete ``image``; promote the lowest-position image if it was primary."""
    _lock(gig)
    was_primary = image.is_primary
    filename = image.filename
    image.delete()
    if was_primary:
        successor = gig.images.order_by("position", "id").first()
        if successor is not None:
            successor.is_primary = True
            successor.save(update_fields=["is_primary"])
    transaction.on_commit(lambda: delete_stored(filename))


def delete_gig(gig):
    """Delete ``gig`` and, once committed, the files of its images."""
    filenames = list(gig.images.values_list("filename", flat=True))
    with transaction.atomic():
        gig.delete()
        transaction.on_commit(lambda: [delete_stored(name) for name in filenames])
    logger.info("Deleted gig %r with %s image(s)", gig.title, len(filenames))


def change_status(gig, target, *, as_admin=False, actor=None, reason=""):
    """Move ``gig`` to ``target`` or raise InvalidTransition."""
    current = gig.status
    if not as_admin and target not in OWNER_TRANSITIONS.get(current, set()):
        raise InvalidTransition(current, target, "owner")
    if target not in Gig.Status.values:
        raise InvalidTransition(current, target)

    gig.status = target
    fields = ["status", "updated_at"]
    if as_admin and target == Gig.Status.ACTIVE:
        gig.approved_by = actor
        gig.approved_at = timezone.now()
        gig.rejection_reason = ""
        fields += ["approved_by", "approved_at", "rejection_reason"]
    elif target == Gig.Status.REJECTED:
        gig.rejection_reason = reason or ""
        fields.append("rejection_reason")
    gig.save(update_fields=fields)
    logger.info("Gig %s status %s -> %s", gig.pk, current, target)
    return gig
