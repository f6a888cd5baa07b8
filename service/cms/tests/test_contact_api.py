import unittest

from fastapi.testclient import TestClient

from cms.app import create_app
from cms.db import InMemoryDbClient
from cms.dependencies import get_db_client, get_queue_client
from cms.queue import CONTACT_REPLY, CONTACT_SUBMISSION, InMemoryJobQueue


class ContactApiTests(unittest.TestCase):
    def setUp(self):
        app = create_app()
        self.db = InMemoryDbClient()
        self.queue = InMemoryJobQueue()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_queue_client] = lambda: self.queue
        self.client = TestClient(app)

    def _submit(self, **values):
        body = {
            "name": "  Omar  ",
            "email": "Omar@Example.com",
            "message": "Looking for a custom stand at Arab Health next year.",
            "company_name": "Acme",
            "agreed_to_terms": True,
        }
        body.update(values)
        return self.client.post("/api/contact/submit", json=body)

    def test_submit_stores_and_queues(self):
        response = self._submit()
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()["success"])
        row = self.db.get("contact_form_submissions", response.json()["data"]["id"])
        self.assertEqual(row["name"], "Omar")
        self.assertEqual(row["email"], "omar@example.com")
        self.assertEqual(row["status"], "new")
        self.assertTrue(row["agreed_to_terms"])
        job = self.queue.dequeue(block=False)
        self.assertEqual((job.kind, job.record_id), (CONTACT_SUBMISSION, row["id"]))

    def test_required_field_messages(self):
        cases = {
            "name": "Name is required",
            "email": "Email is required",
            "message": "Message is required",
        }
        for field, detail in cases.items():
            response = self._submit(**{field: " "})
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json()["detail"], detail)
        self.assertEqual(
            self._submit(email="nope").json()["detail"], "Invalid email format"
        )

    def test_spam_submission_is_not_queued(self):
        response = self._submit(message="Congratulations winner! Click here to claim.")
        row = self.db.get("contact_form_submissions", response.json()["data"]["id"])
        self.assertTrue(row["is_spam"])
        self.assertEqual(row["status"], "spam")
        self.assertGreaterEqual(row["spam_score"], 0.5)
        self.assertEqual(self.queue.items, [])

    def test_admin_list_stats_and_reply(self):
        first = self._submit().json()["data"]["id"]
        self._submit(name="Lina", email="lina@example.com")

        listed = self.client.get("/api/contact/submissions", params={"search": "lina"})
        self.assertEqual(listed.json()["total"], 1)

        stats = self.client.get("/api/contact/submissions/stats").json()["stats"]
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["new"], 2)
        self.assertEqual(stats["today"], 2)

        self.queue.items.clear()
        self.assertEqual(
            self.client.post(f"/api/contact/submissions/{first}/reply", json={}).status_code, 400
        )
        reply = self.client.post(
            f"/api/contact/submissions/{first}/reply", json={"message": "Thanks, call you soon"}
        )
        self.assertEqual(reply.status_code, 200)
        row = self.db.get("contact_form_submissions", first)
        self.assertEqual(row["status"], "replied")
        self.assertEqual(row["admin_notes"], "Thanks, call you soon")
        job = self.queue.dequeue(block=False)
        self.assertEqual(job.kind, CONTACT_REPLY)
        self.assertEqual(job.payload, {"message": "Thanks, call you soon"})

    def test_patch_and_delete_submission(self):
        submission_id = self._submit().json()["data"]["id"]
        patched = self.client.patch(
            f"/api/contact/submissions/{submission_id}", json={"handled_by": "ops"}
        )
        self.assertIsNotNone(patched.json()["submission"]["handled_at"])
        self.assertEqual(
            self.client.patch(f"/api/contact/submissions/{submission_id}", json={}).status_code,
            400,
        )
        self.assertEqual(
            self.client.delete(f"/api/contact/submissions/{submission_id}").status_code, 200
        )
        self.assertEqual(
            self.client.get(f"/api/contact/submissions/{submission_id}").status_code, 404
        )

    def test_null_for_required_column_is_a_bad_request(self):
        company = self.client.post("/api/contact/companies", json={"region": "Oman"}).json()["data"]
        response = self.client.put(
            f"/api/contact/companies/{company['id']}", json={"sort_order": None}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Missing required field: sort_order")

        submission_id = self._submit().json()["data"]["id"]
        patched = self.client.patch(
            f"/api/contact/submissions/{submission_id}", json={"status": None}
        )
        self.assertEqual(patched.status_code, 400)
        self.assertEqual(self.db.get("contact_form_submissions", submission_id)["status"], "new")

    def test_non_text_required_fields(self):
        response = self.client.put("/api/contact/hero", json={"title": 7})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Title is required")
        company = self.client.post("/api/contact/companies", json={"region": ["Qatar"]})
        self.assertEqual(company.status_code, 400)

    def test_page_data_defaults_then_saved_content(self):
        defaults = self.client.get("/api/contact/page-data").json()["data"]
        self.assertEqual(defaults["hero"]["title"], "Contact Us")
        self.assertEqual(len(defaults["groupCompanies"]), 3)
        self.assertEqual(defaults["mapSettings"]["map_height"], 400)

        self.client.put("/api/contact/hero", json={"title": "Talk to us"})
        self.client.post("/api/contact/companies", json={"region": "Qatar", "sort_order": 2})
        self.client.post("/api/contact/companies", json={"region": "Oman", "sort_order": 1})
        data = self.client.get("/api/contact/page-data").json()["data"]
        self.assertEqual(data["hero"]["title"], "Talk to us")
        self.assertEqual([c["region"] for c in data["groupCompanies"]], ["Oman", "Qatar"])
        self.assertEqual(data["formSettings"]["form_title"], "Feel Free To Write")

    def test_singleton_content_updates_in_place(self):
        first = self.client.put("/api/contact/map", json={"map_embed_url": "https://maps/1"})
        second = self.client.put("/api/contact/map", json={"map_embed_url": "https://maps/2"})
        self.assertEqual(first.json()["data"]["id"], second.json()["data"]["id"])
        self.assertEqual(self.db.count("contact_map_settings"), 1)
        self.assertEqual(self.client.put("/api/contact/hero", json={}).status_code, 400)
        self.assertEqual(
            self.client.put(
                "/api/contact/form-settings", json={"form_title": "Hi", "max_file_size_mb": 500}
            ).status_code,
            400,
        )


if __name__ == "__main__":
    unittest.main()
