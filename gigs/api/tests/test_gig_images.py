import os
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.test import override_settings
from django.urls import reverse
from rest_framework import status

from common.testing import MarketplaceAPITestCase, create_gig, create_user_with_role
from gigs.models import GigImage
from profiles.models import Profile

MEDIA_ROOT = tempfile.mkdtemp()


def png(name):
    return SimpleUploadedFile(name, b"\x89PNG" + b"0" * 16, content_type="image/png")


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class GigImageTests(MarketplaceAPITestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        super().setUp()
        self.fred = create_user_with_role("fred", Profile.Role.FREELANCER)
        self.fiona = create_user_with_role("fiona", Profile.Role.FREELANCER)
        self.gig = create_gig(self.fred)
        self.upload_url = reverse("gig-images", kwargs={"pk": self.gig.id})
        self.primary_url = reverse("gig-image-primary", kwargs={"pk": self.gig.id})

    def _upload(self, *names):
        return self.client.post(self.upload_url, {"images": [png(n) for n in names]}, format="multipart")

    def _delete_url(self, image_id):
        return reverse("gig-image-delete", kwargs={"pk": self.gig.id, "image_id": image_id})

    def test_first_upload_becomes_primary(self):
        self.auth(self.fred)
        resp = self._upload("a.png", "b.png")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual([i["is_primary"] for i in resp.data], [True, False])

        resp = self._upload("c.png")
        self.assertEqual([i["is_primary"] for i in resp.data], [True, False, False])
        self.assertEqual([i["position"] for i in resp.data], [0, 1, 2])

    def test_upload_requires_files(self):
        self.auth(self.fred)
        resp = self.client.post(self.upload_url, {}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_owner_cannot_upload(self):
        self.auth(self.fiona)
        resp = self._upload("a.png")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_set_primary_keeps_single_primary(self):
        self.auth(self.fred)
        ids = [i["id"] for i in self._upload("a.png", "b.png").data]
        resp = self.client.patch(self.primary_url, {"image_id": ids[1]}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(list(GigImage.objects.filter(gig=self.gig, is_primary=True).values_list("id", flat=True)), [ids[1]])

    def test_set_primary_with_foreign_image_returns_400(self):
        other = create_gig(self.fiona)
        foreign = GigImage.objects.create(gig=other, url="/uploads/x.png", filename="gigs/x.png", is_primary=True)
        self.auth(self.fred)
        resp = self.client.patch(self.primary_url, {"image_id": foreign.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_removing_primary_promotes_next_and_deletes_file(self):
        self.auth(self.fred)
        ids = [i["id"] for i in self._upload("a.png", "b.png", "c.png").data]
        filename = GigImage.objects.get(pk=ids[0]).filename
        self.assertTrue(os.path.exists(os.path.join(MEDIA_ROOT, filename)))

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.delete(self._delete_url(ids[0]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([i["id"] for i in resp.data], ids[1:])
        self.assertTrue(GigImage.objects.get(pk=ids[1]).is_primary)
        self.assertFalse(os.path.exists(os.path.join(MEDIA_ROOT, filename)))

    def test_removing_last_image_leaves_no_primary(self):
        self.auth(self.fred)
        image_id = self._upload("a.png").data[0]["id"]
        resp = self.client.delete(self._delete_url(image_id))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, [])

    def test_unknown_image_returns_404(self):
        self.auth(self.fred)
        resp = self.client.delete(self._delete_url(99999))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_database_rejects_two_primary_images(self):
        GigImage.objects.create(gig=self.gig, url="/a", filename="a", is_primary=True)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                GigImage.objects.create(gig=self.gig, url="/b", filename="b", is_primary=True)
