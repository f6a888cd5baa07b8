import io
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from PIL import Image

from cms.app import create_app
from cms.config import Settings
from cms.db import InMemoryDbClient
from cms.dependencies import get_db_client, get_storage_client
from cms.storage import InMemoryStorageClient


def jpeg_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (10, 20), "blue").save(buffer, format="JPEG")
    return buffer.getvalue()


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        app = create_app()
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient(base_url="https://cdn.test")
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_storage_client] = lambda: self.storage
        self.client = TestClient(app)


class MediaApiTests(ApiTestCase):
    def test_upload_list_delete(self):
        response = self.client.post(
            "/api/images/upload",
            files={"file": ("Stand.JPG", jpeg_bytes(), "image/jpeg")},
            data={"bucket": "images", "folder": "kiosk/", "alt_text": "Stand"},
        )
        self.assertEqual(response.status_code, 201)
        image = response.json()["image"]
        self.assertTrue(image["path"].startswith("kiosk/image-"))
        self.assertTrue(image["path"].endswith(".jpg"))
        self.assertEqual((image["width"], image["height"]), (10, 20))
        self.assertEqual(
            image["url"], f"https://cdn.test/storage/v1/object/public/images/{image['path']}"
        )

        listed = self.client.get("/api/images", params={"bucket": "images"}).json()
        self.assertEqual(listed["total"], 1)
        self.assertEqual(listed["images"][0]["alt_text"], "Stand")

        self.assertEqual(self.client.delete(f"/api/images/{image['id']}").status_code, 200)
        self.assertEqual(self.storage.stored_objects, {})

    def test_upload_rejects_unlisted_image_types(self):
        response = self.client.post(
            "/api/images/upload",
            files={"file": ("scan.bmp", b"BM fake", "image/bmp")},
            data={"bucket": "images"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid file type. Only images are allowed.")
        self.assertEqual(self.storage.stored_objects, {})

    def test_list_falls_back_to_storage_objects(self):
        self.storage.upload_bytes("blog-images", "posts/cover.png", b"png")
        self.storage.upload_bytes("blog-images", "posts/notes.txt", b"txt")
        listed = self.client.get("/api/images", params={"bucket": "blog-images"}).json()
        self.assertEqual([img["path"] for img in listed["images"]], ["posts/cover.png"])
        self.assertIsNone(listed["images"][0]["id"])

    def test_upload_validation(self):
        not_image = self.client.post(
            "/api/images/upload", files={"file": ("a.txt", b"hello", "text/plain")}
        )
        self.assertEqual(not_image.status_code, 400)
        self.assertEqual(not_image.json()["detail"], "Invalid file type. Only images are allowed.")

        too_big = self.client.post(
            "/api/images/upload",
            files={"file": ("big.png", b"0" * (10 * 1024 * 1024 + 1), "image/png")},
        )
        self.assertEqual(too_big.json()["detail"], "File size must be less than 10MB")

        unknown = self.client.get("/api/images", params={"bucket": "secret"})
        self.assertEqual(unknown.status_code, 400)

    def test_sign_url_uses_storage_client(self):
        response = self.client.get(
            "/api/sign-url", params={"path": "foo/bar.png", "bucket": "images", "op": "put"}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertIn("foo/bar.png", payload["url"])
        self.assertEqual(payload["method"], "put")


class CompanyProfileApiTests(ApiTestCase):
    def _upload(self, title="Company Profile", is_current="true"):
        return self.client.post(
            "/api/company-profile",
            files={"file": ("profile.pdf", b"%PDF-1.4 test", "application/pdf")},
            data={"title": title, "is_current": is_current},
        )

    def test_upload_and_current_document(self):
        self.assertEqual(self.client.get("/api/company-profile").status_code, 404)
        first = self._upload().json()["document"]
        second = self._upload(title="2025 Profile").json()["document"]

        current = self.client.get("/api/company-profile").json()
        self.assertEqual(current["document"]["id"], second["id"])
        self.assertIn("company-profile-documents", current["download_url"])
        self.assertFalse(self.db.get("company_profile_documents", first["id"])["is_current"])

        everything = self.client.get("/api/company-profile", params={"all": "true"}).json()
        self.assertEqual(len(everything["documents"]), 2)

    def test_upload_validation(self):
        self.assertEqual(self._upload(title=" ").status_code, 400)
        not_pdf = self.client.post(
            "/api/company-profile",
            files={"file": ("a.png", b"x", "image/png")},
            data={"title": "Profile"},
        )
        self.assertEqual(not_pdf.json()["detail"], "Only PDF files are allowed")

    def test_blank_version_is_a_bad_request(self):
        document = self._upload().json()["document"]
        response = self.client.put(
            f"/api/company-profile/{document['id']}", json={"version": ""}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Missing required field: version")
        self.assertEqual(
            self.client.put(f"/api/company-profile/{document['id']}", json={"title": 4}).status_code,
            400,
        )

    def test_update_and_delete(self):
        document = self._upload(is_current="false").json()["document"]
        updated = self.client.put(
            f"/api/company-profile/{document['id']}", json={"title": "Renamed", "is_current": True}
        )
        self.assertEqual(updated.json()["document"]["title"], "Renamed")
        self.assertTrue(updated.json()["document"]["is_current"])

        self.assertEqual(
            self.client.delete(f"/api/company-profile/{document['id']}").status_code, 200
        )
        self.assertEqual(self.storage.stored_objects, {})
        self.assertEqual(
            self.client.delete(f"/api/company-profile/{document['id']}").status_code, 404
        )


class PrivacyPolicyApiTests(ApiTestCase):
    def test_versions(self):
        self.assertEqual(self.client.get("/api/privacy-policy").status_code, 404)
        created = self.client.post(
            "/api/privacy-policy", json={"title": "Privacy", "content": "We respect it."}
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["data"]["version"], 1)
        self.assertEqual(created.json()["data"]["contact_email"], "info@chroniclesexhibits.com")

        updated = self.client.put(
            "/api/privacy-policy",
            json={"title": "Privacy", "content": "Updated.", "contact_email": "dpo@site.test"},
        )
        self.assertEqual(updated.json()["data"]["version"], 2)

        current = self.client.get("/api/privacy-policy").json()["data"]
        self.assertEqual(current["content"], "Updated.")
        self.assertEqual(self.db.count("privacy_policy"), 2)

    def test_title_and_content_required(self):
        response = self.client.put("/api/privacy-policy", json={"title": "Only title"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Title and content are required")


class AdminGuardTests(ApiTestCase):
    @patch("cms.auth.get_settings")
    def test_admin_routes_require_bearer_token_when_configured(self, mock_settings):
        mock_settings.return_value = Settings(admin_api_token="s3cret")
        denied = self.client.get("/api/admin/dashboard")
        self.assertEqual(denied.status_code, 401)
        wrong = self.client.get(
            "/api/admin/dashboard", headers={"Authorization": "Bearer nope"}
        )
        self.assertEqual(wrong.status_code, 401)
        allowed = self.client.get(
            "/api/admin/dashboard", headers={"Authorization": "Bearer s3cret"}
        )
        self.assertEqual(allowed.status_code, 200)
        # public routes stay open
        self.assertEqual(self.client.get("/api/pages").status_code, 200)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


class DashboardApiTests(ApiTestCase):
    def test_counts_and_recent_activity(self):
        self.db.insert(
            "events",
            {"title": "Gitex", "slug": "gitex", "published_at": "2025-01-01T00:00:00+00:00"},
        )
        self.db.insert("blog_posts", {"title": "Post", "slug": "post", "status": "published"})
        self.db.insert("cities", {"name": "Dubai", "slug": "dubai"})
        self.db.insert(
            "contact_form_submissions",
            {"name": "Ann", "email": "ann@example.com", "message": "x" * 80},
        )
        payload = self.client.get("/api/admin/dashboard").json()
        stats = payload["stats"]
        self.assertEqual(stats["total_pages"], 9)
        self.assertEqual(stats["published_events"], 1)
        self.assertEqual(stats["published_blogs"], 1)
        self.assertEqual(stats["submissions_today"], 1)
        self.assertEqual(len(payload["recent_activity"]), 4)
        form = next(a for a in payload["recent_activity"] if a["type"] == "form")
        self.assertEqual(form["title"], "Form: Ann - " + "x" * 50 + "...")


if __name__ == "__main__":
    unittest.main()
