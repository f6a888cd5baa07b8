import unittest
from unittest.mock import patch

from cms.db import InMemoryDbClient
from cms.notifications import InMemoryNotifier
from cms.queue import (
    CONTACT_REPLY,
    CONTACT_SUBMISSION,
    EVENT_SUBMISSION,
    InMemoryJobQueue,
    NotificationJob,
)
from cms.worker import MAX_ATTEMPTS, process_next


def fake_settings():
    return type("Settings", (), {"admin_panel_url": "https://admin.test/admin/"})()


class WorkerTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.queue = InMemoryJobQueue()
        self.notifier = InMemoryNotifier()

    def _process(self):
        return process_next(
            db=self.db, queue=self.queue, notifier=self.notifier, block=False
        )

    @patch("cms.worker.get_settings")
    def test_contact_submission_is_emailed(self, mock_settings):
        mock_settings.return_value = fake_settings()
        row = self.db.insert(
            "contact_form_submissions",
            {
                "name": "Omar",
                "email": "omar@example.com",
                "message": "[BOOTH REQUIREMENTS] 9x6 open stand",
                "referrer": "https://site.test/custom-stand",
            },
        )
        self.queue.enqueue(NotificationJob(kind=CONTACT_SUBMISSION, record_id=row["id"]))

        self.assertTrue(self._process())
        payload = self.notifier.sent[0]
        self.assertEqual(payload["form_type"], "booth")
        self.assertEqual(payload["subject"], "New Booth Requirements Submission")
        self.assertEqual(
            payload["submission_url"],
            f"https://admin.test/admin/pages/contact?submission={row['id']}",
        )
        self.assertIn("Source: /custom-stand", payload["message"])
        self.assertEqual(self.queue.items, [])

    @patch("cms.worker.get_settings")
    def test_event_submission_includes_event_title(self, mock_settings):
        mock_settings.return_value = fake_settings()
        event = self.db.insert("events", {"title": "Gitex", "slug": "gitex"})
        row = self.db.insert(
            "event_form_submissions",
            {"name": "Jane", "email": "jane@example.com", "event_id": event["id"]},
        )
        self.queue.enqueue(NotificationJob(kind=EVENT_SUBMISSION, record_id=row["id"]))

        self._process()
        payload = self.notifier.sent[0]
        self.assertEqual(payload["form_type"], "event")
        self.assertEqual(payload["event_id"], event["id"])
        self.assertIn("Event: Gitex", payload["message"])

    @patch("cms.worker.get_settings")
    def test_reply_uses_payload_message(self, mock_settings):
        mock_settings.return_value = fake_settings()
        row = self.db.insert(
            "contact_form_submissions",
            {"name": "Lina", "email": "lina@example.com", "message": "Hello"},
        )
        self.queue.enqueue(
            NotificationJob(kind=CONTACT_REPLY, record_id=row["id"], payload={"message": "On it"})
        )

        self._process()
        payload = self.notifier.sent[0]
        self.assertEqual(payload["subject"], "Reply sent to Lina")
        self.assertIn("On it", payload["message"])

    @patch("cms.worker.get_settings")
    def test_failed_send_is_retried_then_dropped(self, mock_settings):
        mock_settings.return_value = fake_settings()
        self.notifier.failures_remaining = MAX_ATTEMPTS
        row = self.db.insert(
            "contact_form_submissions",
            {"name": "Omar", "email": "omar@example.com", "message": "Hi"},
        )
        self.queue.enqueue(NotificationJob(kind=CONTACT_SUBMISSION, record_id=row["id"]))

        for attempt in range(1, MAX_ATTEMPTS):
            self.assertTrue(self._process())
            requeued = NotificationJob.from_json(self.queue.items[0])
            self.assertEqual(requeued.attempts, attempt)

        self.assertTrue(self._process())
        self.assertEqual(self.queue.items, [])
        self.assertEqual(self.notifier.sent, [])

    @patch("cms.worker.get_settings")
    def test_retry_succeeds_after_transient_failure(self, mock_settings):
        mock_settings.return_value = fake_settings()
        self.notifier.failures_remaining = 1
        row = self.db.insert(
            "contact_form_submissions",
            {"name": "Omar", "email": "omar@example.com", "message": "Hi"},
        )
        self.queue.enqueue(NotificationJob(kind=CONTACT_SUBMISSION, record_id=row["id"]))

        self._process()
        self._process()
        self.assertEqual(len(self.notifier.sent), 1)

    def test_missing_record_is_skipped(self):
        self.queue.enqueue(NotificationJob(kind=CONTACT_SUBMISSION, record_id="gone"))
        self.assertTrue(self._process())
        self.assertEqual(self.notifier.sent, [])
        self.assertEqual(self.queue.items, [])

    def test_process_once_no_jobs(self):
        self.assertFalse(self._process())


if __name__ == "__main__":
    unittest.main()
