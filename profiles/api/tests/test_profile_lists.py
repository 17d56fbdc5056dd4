from django.urls import reverse
from rest_framework import status

from common.testing import MarketplaceAPITestCase, create_user_with_role
from profiles.models import Profile


class FreelancerProfileListTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.fiona = create_user_with_role("fiona", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        Profile.objects.filter(user=self.fiona).update(average_rating="4.50", skills=["python"])
        self.url = reverse("freelancer-profiles")

    def test_lists_only_freelancers_best_rated_first(self):
        self.auth(self.carla)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        ids = [row["user"] for row in resp.data["results"]]
        self.assertEqual(ids, [self.fiona.id, self.fred.id])

    def test_suspended_freelancers_are_hidden(self):
        Profile.objects.filter(user=self.fred).update(is_suspended=True)
        self.auth(self.carla)
        resp = self.client.get(self.url)
        ids = [row["user"] for row in resp.data["results"]]
        self.assertEqual(ids, [self.fiona.id])

    def test_search_matches_skills(self):
        self.auth(self.carla)
        resp = self.client.get(self.url, {"search": "python"})
        ids = [row["user"] for row in resp.data["results"]]
        self.assertEqual(ids, [self.fiona.id])

    def test_unauthenticated_gets_401(self):
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class ClientProfileListTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)

    def test_lists_only_clients(self):
        self.auth(self.fred)
        resp = self.client.get(reverse("client-profiles"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 1)
        row = resp.data["results"][0]
        self.assertEqual(row["user"], self.carla.id)
        self.assertEqual(set(row), {"user", "name", "profile_picture", "location", "joined_at"})
