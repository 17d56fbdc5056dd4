"""Aggregate queries behind the admin dashboard and analytics endpoints."""

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from gigs.models import Gig
from orders.models import Order
from profiles.models import Profile
from reviews.models import Review

User = get_user_model()

RECENT_LIMIT = 5


def _money(value):
    return str(value if value is not None else Decimal("0.00"))


def dashboard_stats():
    completed = Order.objects.filter(status=Order.Status.COMPLETED)
    return {
        "total_users": User.objects.count(),
        "total_freelancers": Profile.objects.filter(role=Profile.Role.FREELANCER).count(),
        "total_clients": Profile.objects.filter(role=Profile.Role.CLIENT).count(),
        "total_gigs": Gig.objects.count(),
        "active_gigs": Gig.objects.filter(status=Gig.Status.ACTIVE).count(),
        "pending_gigs": Gig.objects.filter(status=Gig.Status.PENDING).count(),
        "total_orders": Order.objects.count(),
        "completed_orders": completed.count(),
        "total_revenue": _money(completed.aggregate(total=Sum("amount"))["total"]),
        "pending_reviews": Review.objects.filter(status=Review.Status.PENDING).count(),
        "reported_reviews": Review.objects.filter(reported=True).count(),
    }


def recent_activity():
    orders = Order.objects.select_related("gig", "buyer", "seller").order_by("-created_at", "-id")[:RECENT_LIMIT]
    users = User.objects.select_related("profile").order_by("-date_joined", "-id")[:RECENT_LIMIT]
    return {
        "orders": [
            {
                "id": o.id,
                "gig": o.gig.title,
                "buyer": o.buyer.first_name,
                "seller": o.seller.first_name,
                "amount": _money(o.amount),
                "status": o.status,
                "created_at": o.created_at,
            }
            for o in orders
        ],
        "users": [
            {
                "id": u.id,
                "name": u.first_name,
                "email": u.email,
                "role": getattr(getattr(u, "profile", None), "role", ""),
                "date_joined": u.date_joined,
            }
            for u in users
        ],
    }


def analytics(days):
    """Daily registrations and orders for the last ``days`` days plus revenue per category."""
    since = timezone.now() - timedelta(days=days)

    registrations = (
        User.objects.filter(date_joined__gte=since)
        .annotate(day=TruncDate("date_joined"))
        .values("day")
        .annotate(count=Count("id"))
        .order_by("day")
    )
    order_trends = (
        Order.objects.filter(created_at__gte=since)
        .annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(count=Count("id"), revenue=Sum("amount"))
        .order_by("day")
    )
    by_category = (
        Order.objects.filter(status=Order.Status.COMPLETED)
        .values("gig__category")
        .annotate(revenue=Sum("amount"), orders=Count("id"))
        .order_by("-revenue")
    )
    return {
        "period": days,
        "user_registrations": [{"date": r["day"], "count": r["count"]} for r in registrations],
        "order_trends": [
            {"date": r["day"], "count": r["count"], "revenue": _money(r["revenue"])} for r in order_trends
        ],
        "revenue_by_category": [
            {"category": r["gig__category"], "revenue": _money(r["revenue"]), "orders": r["orders"]}
            for r in by_category
        ],
    }
