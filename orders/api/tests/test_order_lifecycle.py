import os
import shutil
import tempfile
from decimal import Decimal
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from rest_framework import status

from common.exceptions import InvalidTransition
from common.testing import MarketplaceAPITestCase, create_gig, create_order, create_user_with_role
from messaging.models import Message
from orders import lifecycle
from orders.models import Order, RevisionRequest
from profiles.models import Profile

MEDIA_ROOT = tempfile.mkdtemp()


class TransitionTableTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.admin = create_user_with_role("boss", Profile.Role.ADMIN)
        self.gig = create_gig(self.fred)

    def _move(self, order, user, target):
        self.auth(user)
        return self.client.patch(reverse("order-status", kwargs={"pk": order.id}), {"status": target}, format="json")

    def test_allowed_and_rejected_moves(self):
        S = Order.Status
        cases = [
            (S.PENDING, "seller", S.ACCEPTED, True),
            (S.PENDING, "buyer", S.ACCEPTED, False),
            (S.PENDING, "buyer", S.CANCELLED, True),
            (S.PENDING, "seller", S.DELIVERED, False),
            (S.ACCEPTED, "seller", S.IN_PROGRESS, True),
            (S.ACCEPTED, "buyer", S.DISPUTED, True),
            (S.IN_PROGRESS, "seller", S.DELIVERED, True),
            (S.IN_PROGRESS, "buyer", S.COMPLETED, False),
            (S.DELIVERED, "seller", S.COMPLETED, False),
            (S.DELIVERED, "admin", S.COMPLETED, True),
            (S.DELIVERED, "buyer", S.CANCELLED, False),
            (S.DELIVERED, "admin", S.CANCELLED, True),
            (S.DISPUTED, "seller", S.IN_PROGRESS, False),
            (S.DISPUTED, "admin", S.IN_PROGRESS, True),
            (S.COMPLETED, "admin", S.CANCELLED, False),
            (S.CANCELLED, "admin", S.PENDING, False),
        ]
        users = {"buyer": self.carla, "seller": self.fred, "admin": self.admin}
        for current, role, target, allowed in cases:
            with self.subTest(current=current, role=role, target=target):
                order = create_order(self.carla, self.gig, status=current)
                resp = self._move(order, users[role], target)
                order.refresh_from_db()
                if allowed:
                    self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
                    self.assertEqual(order.status, target)
                else:
                    self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
                    self.assertEqual(resp.data["code"], "invalid_transition")
                    self.assertEqual(order.status, current)

    def test_outsider_gets_403_before_table(self):
        outsider = create_user_with_role("chris", Profile.Role.CLIENT)
        order = create_order(self.carla, self.gig)
        resp = self._move(order, outsider, Order.Status.CANCELLED)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_status_returns_400(self):
        order = create_order(self.carla, self.gig)
        resp = self._move(order, self.fred, "shipped")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", resp.data)

    def test_check_transition_raises_typed_error(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.check_transition(Order.Status.PENDING, Order.Status.COMPLETED, "buyer")

    def test_transition_posts_order_update_message(self):
        order = create_order(self.carla, self.gig)
        self.auth(self.fred)
        self.client.patch(
            reverse("order-status", kwargs={"pk": order.id}),
            {"status": "accepted", "message": "Starting tomorrow"},
            format="json",
        )
        msg = Message.objects.get(conversation__order=order)
        self.assertEqual(msg.message_type, Message.Type.ORDER_UPDATE)
        self.assertEqual(msg.content, "Starting tomorrow")
        self.assertEqual(msg.sender, self.fred)

    def test_cancel_stamps_party_and_reason(self):
        order = create_order(self.carla, self.gig)
        self.auth(self.carla)
        resp = self.client.patch(
            reverse("order-cancel", kwargs={"pk": order.id}), {"reason": "Changed my mind"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["cancelled_by"], "buyer")
        self.assertEqual(resp.data["cancellation_reason"], "Changed my mind")
        self.assertIsNotNone(resp.data["cancelled_date"])

    def test_dispute_stores_reason(self):
        order = create_order(self.carla, self.gig, status=Order.Status.IN_PROGRESS)
        self.auth(self.carla)
        resp = self.client.patch(
            reverse("order-status", kwargs={"pk": order.id}),
            {"status": "disputed", "reason": "No response"},
            format="json",
        )
        self.assertEqual(resp.data["dispute_reason"], "No response")


class CompletionStatsTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.gig = create_gig(self.fred, price=Decimal("50.00"))

    def test_fifty_dollar_order_end_to_end(self):
        self.auth(self.carla)
        resp = self.client.post(
            reverse("order-list"), {"gig_id": self.gig.id, "requirements": ["Logo for ACME"]}, format="json"
        )
        order_id = resp.data["id"]

        self.auth(self.fred)
        self.client.patch(reverse("order-status", kwargs={"pk": order_id}), {"status": "accepted"}, format="json")
        resp = self.client.post(
            reverse("order-delivery", kwargs={"pk": order_id}), {"message": "Here you go"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "delivered")
        self.assertIsNotNone(resp.data["delivery_date"])

        self.auth(self.carla)
        resp = self.client.patch(reverse("order-complete", kwargs={"pk": order_id}), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(resp.data["completed_date"])

        profile = Profile.objects.get(user=self.fred)
        self.gig.refresh_from_db()
        self.assertEqual(profile.total_earnings, Decimal("50.00"))
        self.assertEqual(profile.total_orders, 1)
        self.assertEqual(self.gig.total_orders, 1)
        self.assertEqual(self.gig.total_earnings, Decimal("50.00"))

    def test_completion_counts_exactly_once(self):
        order = create_order(self.carla, self.gig, status=Order.Status.DELIVERED)
        self.auth(self.carla)
        url = reverse("order-complete", kwargs={"pk": order.id})
        first = self.client.patch(url, {}, format="json")
        second = self.client.patch(url, {}, format="json")
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)

        profile = Profile.objects.get(user=self.fred)
        self.gig.refresh_from_db()
        self.assertEqual(profile.total_orders, 1)
        self.assertEqual(profile.total_earnings, Decimal("50.00"))
        self.assertEqual(self.gig.total_orders, 1)

    def test_stale_instance_cannot_complete_twice(self):
        order = create_order(self.carla, self.gig, status=Order.Status.DELIVERED)
        stale = Order.objects.get(pk=order.pk)
        lifecycle.transition(order, self.carla, Order.Status.COMPLETED)
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(stale, self.carla, Order.Status.COMPLETED)
        self.assertEqual(Profile.objects.get(user=self.fred).total_orders, 1)

    def test_failure_rolls_back_every_write(self):
        order = create_order(self.carla, self.gig, status=Order.Status.DELIVERED)
        with mock.patch.object(lifecycle, "_post_update", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                lifecycle.transition(order, self.carla, Order.Status.COMPLETED)

        order.refresh_from_db()
        self.gig.refresh_from_db()
        self.assertEqual(order.status, Order.Status.DELIVERED)
        self.assertEqual(Profile.objects.get(user=self.fred).total_orders, 0)
        self.assertEqual(self.gig.total_orders, 0)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class DeliveryAndRevisionTests(MarketplaceAPITestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.gig = create_gig(self.fred)
        self.order = create_order(self.carla, self.gig, status=Order.Status.IN_PROGRESS)

    def test_delivery_with_files(self):
        self.auth(self.fred)
        upload = SimpleUploadedFile("final.pdf", b"%PDF-1.4", content_type="application/pdf")
        resp = self.client.post(
            reverse("order-delivery", kwargs={"pk": self.order.id}),
            {"message": "Final files", "files": [upload]},
            format="multipart",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["delivery_message"], "Final files")
        self.assertEqual(len(resp.data["delivery_files"]), 1)
        self.assertEqual(resp.data["delivery_files"][0]["original_name"], "final.pdf")

    def test_delivery_rejects_bad_file(self):
        self.auth(self.fred)
        upload = SimpleUploadedFile("run.exe", b"MZ", content_type="application/x-msdownload")
        resp = self.client.post(
            reverse("order-delivery", kwargs={"pk": self.order.id}), {"files": [upload]}, format="multipart"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.IN_PROGRESS)

    def test_delivery_refused_under_lock_leaves_no_files(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.Status.CANCELLED)
        upload = SimpleUploadedFile("late-delivery.pdf", b"%PDF-1.4", content_type="application/pdf")
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(self.order, self.fred, Order.Status.DELIVERED, files=[upload])

        stored = [name for _, _, files in os.walk(MEDIA_ROOT) for name in files]
        self.assertFalse([name for name in stored if name.endswith("late-delivery.pdf")])
        self.assertEqual(Order.objects.get(pk=self.order.pk).status, Order.Status.CANCELLED)

    def test_only_seller_delivers(self):
        self.auth(self.carla)
        resp = self.client.post(reverse("order-delivery", kwargs={"pk": self.order.id}), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_redelivery_is_allowed(self):
        self.order.status = Order.Status.DELIVERED
        self.order.save()
        self.auth(self.fred)
        resp = self.client.post(
            reverse("order-delivery", kwargs={"pk": self.order.id}), {"message": "v2"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["delivery_message"], "v2")

    def test_revision_request_keeps_status(self):
        self.auth(self.carla)
        resp = self.client.post(
            reverse("order-revision", kwargs={"pk": self.order.id}), {"message": "Bigger logo please"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["status"], "pending")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.IN_PROGRESS)

        self.auth(self.fred)
        resp = self.client.patch(
            reverse("order-revision-complete", kwargs={"pk": self.order.id, "rid": resp.data["id"]}), {}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "completed")
        self.assertIsNotNone(resp.data["completed_at"])

    def test_revision_outside_allowed_states_returns_400(self):
        self.order.status = Order.Status.PENDING
        self.order.save()
        self.auth(self.carla)
        resp = self.client.post(
            reverse("order-revision", kwargs={"pk": self.order.id}), {"message": "Change it"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(RevisionRequest.objects.exists())

    def test_only_buyer_requests_revision(self):
        self.auth(self.fred)
        resp = self.client.post(
            reverse("order-revision", kwargs={"pk": self.order.id}), {"message": "x"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)


class OrderThreadTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.carla = create_user_with_role("carla", Profile.Role.CLIENT)
        self.chris = create_user_with_role("chris", Profile.Role.CLIENT)
        self.admin = create_user_with_role("boss", Profile.Role.ADMIN)
        self.order = create_order(self.carla, create_gig(self.fred))
        self.url = reverse("order-messages", kwargs={"pk": self.order.id})

    def test_parties_and_admin_use_thread(self):
        self.auth(self.carla)
        resp = self.client.post(self.url, {"content": "Hi!"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        self.auth(self.fred)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([m["content"] for m in resp.data["results"]], ["Hi!"])

        self.auth(self.admin)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)

    def test_outsider_gets_403(self):
        self.auth(self.chris)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)
