import unittest

from cms.queue import CONTACT_REPLY, InMemoryJobQueue, NotificationJob
from cms.storage import InMemoryStorageClient


class QueueTests(unittest.TestCase):
    def test_job_json_keeps_attempts_and_payload(self):
        job = NotificationJob(kind=CONTACT_REPLY, record_id="r1", attempts=2, payload={"message": "hi"})
        restored = NotificationJob.from_json(job.to_json())
        self.assertEqual(restored, job)

    def test_in_memory_queue_is_fifo(self):
        queue = InMemoryJobQueue()
        queue.enqueue(NotificationJob(kind="a", record_id="1"))
        queue.enqueue(NotificationJob(kind="a", record_id="2"))
        self.assertEqual(queue.dequeue(block=False).record_id, "1")
        self.assertEqual(queue.dequeue(block=False).record_id, "2")
        self.assertIsNone(queue.dequeue(block=False))


class InMemoryStorageTests(unittest.TestCase):
    def test_upload_list_and_delete(self):
        storage = InMemoryStorageClient(base_url="https://cdn.test/")
        storage.upload_bytes("images", "a/one.png", b"1", "image/png")
        storage.upload_bytes("images", "b/two.png", b"22", "image/png")
        self.assertEqual(storage.get_bytes("images", "b/two.png"), b"22")
        self.assertEqual([obj["name"] for obj in storage.list("images", "a/")], ["a/one.png"])
        self.assertEqual(
            storage.public_url("images", "a/one.png"),
            "https://cdn.test/storage/v1/object/public/images/a/one.png",
        )
        storage.delete("images", ["a/one.png"])
        with self.assertRaises(FileNotFoundError):
            storage.get_bytes("images", "a/one.png")

    def test_ensure_bucket_reports_creation(self):
        storage = InMemoryStorageClient()
        self.assertTrue(storage.ensure_bucket("documents"))
        self.assertFalse(storage.ensure_bucket("documents"))


if __name__ == "__main__":
    unittest.main()
