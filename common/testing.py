"""Helpers shared by the API test suites."""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from profiles.models import Profile

User = get_user_model()

DEFAULT_PASSWORD = "Sup3r-Secret-pw"


def create_user_with_role(username: str, role: str, **extra):
    email = extra.pop("email", f"{username}@example.com")
    user = User.objects.create_user(
        username=email, email=email, password=DEFAULT_PASSWORD, first_name=username, **extra
    )
    Profile.objects.create(user=user, role=role)
    return user


def create_gig(seller, **overrides):
    from gigs.models import Gig

    data = {
        "title": "I will design a modern logo",
        "description": "A clean, modern logo for your brand with unlimited concepts and source files.",
        "category": Gig.Category.GRAPHICS_DESIGN,
        "subcategory": "Logo Design",
        "price": Decimal("50.00"),
        "delivery_time": 3,
        "revisions": 2,
        "status": Gig.Status.ACTIVE,
    }
    data.update(overrides)
    return Gig.objects.create(seller=seller, **data)


def create_order(buyer, gig, **overrides):
    from orders.models import Order

    data = {
        "amount": gig.price,
        "requirements": ["Brand name: ACME"],
        "status": Order.Status.PENDING,
    }
    data.update(overrides)
    return Order.objects.create(gig=gig, buyer=buyer, seller=gig.seller, **data)


class MarketplaceAPITestCase(APITestCase):
    """APITestCase that resets throttle counters before every test."""

    def setUp(self):
        super().setUp()
        cache.clear()

    def auth(self, user):
        token, _ = Token.objects.get_or_create(user=user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")
        return token

    def logout(self):
        self.client.credentials()
