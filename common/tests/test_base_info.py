from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from common.testing import create_gig, create_order, create_user_with_role
from gigs.models import Gig
from orders.models import Order
from profiles.models import Profile
from reviews.models import Review


class BaseInfoAPITests(TestCase):
    """
    Tests for GET /api/base-info/

    Requirements:
    - No authentication required (AllowAny).
    - Counts approved reviews, freelancer profiles and active gigs.
    - Returns average rating rounded to 1 decimal; 0.0 if no approved reviews.
    """

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("base-info")

    def _review(self, buyer, gig, rating, status=Review.Status.APPROVED):
        order = create_order(buyer, gig, status=Order.Status.COMPLETED)
        return Review.objects.create(
            order=order, gig=gig, reviewer=buyer, reviewee=gig.seller, rating=rating, comment="ok", status=status
        )

    def test_no_data_returns_zeros(self):
        """With no rows in DB, all counters are zero and average_rating is 0.0."""
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            res.data,
            {"review_count": 0, "average_rating": 0.0, "freelancer_count": 0, "active_gig_count": 0},
        )

    def test_counts_and_average_rating(self):
        """Only approved reviews and active gigs are counted."""
        fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        carla = create_user_with_role("carla", Profile.Role.CLIENT)
        gig = create_gig(fred)
        create_gig(fred, status=Gig.Status.DRAFT)

        # approved [4, 5] => 4.5; the pending 1 is ignored
        self._review(carla, gig, 4)
        self._review(carla, gig, 5)
        self._review(carla, gig, 1, status=Review.Status.PENDING)

        res = self.client.get(self.url)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["review_count"], 2)
        self.assertEqual(res.data["average_rating"], 4.5)
        self.assertEqual(res.data["freelancer_count"], 1)
        self.assertEqual(res.data["active_gig_count"], 1)

    def test_average_is_rounded_to_one_decimal(self):
        """Non-integer averages must be rounded to one decimal place."""
        fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        carla = create_user_with_role("carla", Profile.Role.CLIENT)
        gig = create_gig(fred)
        for rating in (5, 4, 4):
            self._review(carla, gig, rating)

        res = self.client.get(self.url)
        self.assertEqual(res.data["average_rating"], 4.3)
