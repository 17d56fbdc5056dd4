"""Review moderation and the ratings derived from approved reviews."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Avg, Count
from django.utils import timezone

from gigs.models import Gig
from profiles.models import Profile
from .models import Review

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def _summary(qs):
    agg = qs.filter(status=Review.Status.APPROVED).aggregate(avg=Avg("rating"), n=Count("id"))
    avg = Decimal(str(agg["avg"] or 0)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return avg, agg["n"]


def recompute_ratings(gig_id, reviewee_id):
    """Recalculate the rating of a gig and of its seller from approved reviews."""
    avg, count = _summary(Review.objects.filter(gig_id=gig_id))
    Gig.objects.filter(pk=gig_id).update(rating=avg, total_reviews=count)

    avg, count = _summary(Review.objects.filter(reviewee_id=reviewee_id))
    Profile.objects.filter(user_id=reviewee_id).update(average_rating=avg, total_reviews=count)


@transaction.atomic
def update_review(review, **fields):
    """Apply an author's edit; the review goes back to moderation."""
    was_approved = review.status == Review.Status.APPROVED
    for attr, value in fields.items():
        setattr(review, attr, value)
    review.status = Review.Status.PENDING
    review.moderated_by = None
    review.moderated_at = None
    review.save()
    if was_approved:
        recompute_ratings(review.gig_id, review.reviewee_id)
    return review


@transaction.atomic
def moderate(review, status, moderator, reason=""):
    """Approve or reject a review and refresh the derived ratings."""
    review.status = status
    review.moderated_by = moderator
    review.moderated_at = timezone.now()
    review.rejection_reason = reason if status == Review.Status.REJECTED else ""
    review.save(update_fields=["status", "moderated_by", "moderated_at", "rejection_reason", "updated_at"])
    recompute_ratings(review.gig_id, review.reviewee_id)
    logger.info("Review %s %s by %s", review.pk, status, moderator.id)
    return review


@transaction.atomic
def delete_review(review):
    gig_id, reviewee_id = review.gig_id, review.reviewee_id
    review.delete()
    recompute_ratings(gig_id, reviewee_id)


def report(review, user, reason):
    review.reported = True
    review.report_reason = reason
    review.reported_by = user
    review.save(update_fields=["reported", "report_reason", "reported_by", "updated_at"])
    logger.info("Review %s reported by %s", review.pk, user.id)
    return review


def respond(review, admin, content):
    """Attach the platform's public reply to a review; a later reply replaces it."""
    review.admin_response = content
    review.admin_response_by = admin
    review.admin_response_at = timezone.now()
    review.save(update_fields=["admin_response", "admin_response_by", "admin_response_at", "updated_at"])
    logger.info("Admin %s responded to review %s", admin.id, review.pk)
    return review
