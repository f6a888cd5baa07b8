import unittest

from fastapi.testclient import TestClient

from cms.app import create_app
from cms.db import InMemoryDbClient
from cms.dependencies import get_db_client


class BlogApiTests(unittest.TestCase):
    def setUp(self):
        app = create_app()
        self.db = InMemoryDbClient()
        app.dependency_overrides[get_db_client] = lambda: self.db
        self.client = TestClient(app)

    def _post(self, title, **values):
        response = self.client.post("/api/blog/posts", json=dict(values, title=title))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["post"]

    def test_create_generates_unique_slugs(self):
        first = self._post("Stand Design Tips")
        second = self._post("Stand Design Tips")
        third = self._post("Stand Design Tips")
        self.assertEqual(
            [first["slug"], second["slug"], third["slug"]],
            ["stand-design-tips", "stand-design-tips-2", "stand-design-tips-3"],
        )
        self.assertEqual(first["status"], "draft")
        self.assertIsNone(first["published_at"])

    def test_create_requires_title(self):
        response = self.client.post("/api/blog/posts", json={"content": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Title is required")

    def test_published_listing_with_tags_and_reading_time(self):
        tag = self.client.post("/api/blog/tags", json={"name": "Design"}).json()["tag"]
        self._post(
            "Published",
            status="published",
            content="<p>" + "word " * 450 + "</p>",
            tag_ids=[tag["id"]],
        )
        self._post("Draft")
        response = self.client.get("/api/blog/posts")
        payload = response.json()
        self.assertEqual(payload["total_count"], 1)
        post = payload["posts"][0]
        self.assertEqual(post["title"], "Published")
        self.assertEqual(post["tags"], ["Design"])
        self.assertEqual(post["reading_time"], 3)
        self.assertEqual(post["reading_time_text"], "3 min read")

        by_tag = self.client.get("/api/blog/posts", params={"tag": "design"}).json()
        self.assertEqual(by_tag["total_count"], 1)
        everything = self.client.get("/api/blog/posts", params={"status": "all"}).json()
        self.assertEqual(everything["total_count"], 2)

    def test_category_filter_and_related(self):
        news = self.client.post("/api/blog/categories", json={"name": "News"}).json()["category"]
        main = self._post("Main", status="published", category_id=news["id"])
        sibling = self._post("Sibling", status="published", category_id=news["id"])
        other = self._post("Other", status="published")

        filtered = self.client.get("/api/blog/posts", params={"category": "news"}).json()
        self.assertEqual({p["title"] for p in filtered["posts"]}, {"Main", "Sibling"})
        self.assertEqual(filtered["posts"][0]["category_name"], "News")

        related = self.client.get(
            "/api/blog/posts", params={"related_to": main["id"], "page_size": 3}
        ).json()
        self.assertEqual(
            [p["id"] for p in related["posts"]], [sibling["id"], other["id"]]
        )

    def test_get_by_slug_counts_views(self):
        self._post("Readable", status="published", content="short text")
        first = self.client.get("/api/blog/posts/readable").json()["post"]
        second = self.client.get("/api/blog/posts/readable").json()["post"]
        self.assertEqual((first["view_count"], second["view_count"]), (1, 2))
        self.assertEqual(second["reading_time"], 1)

        self._post("Hidden")
        self.assertEqual(self.client.get("/api/blog/posts/hidden").status_code, 404)

    def test_update_publishes_and_replaces_tags(self):
        one = self.client.post("/api/blog/tags", json={"name": "One"}).json()["tag"]
        two = self.client.post("/api/blog/tags", json={"name": "Two"}).json()["tag"]
        post = self._post("Later", tag_ids=[one["id"]])
        response = self.client.put(
            "/api/blog/posts/later", json={"status": "published", "tag_ids": [two["id"]]}
        )
        updated = response.json()["post"]
        self.assertIsNotNone(updated["published_at"])
        links = self.db.select("blog_post_tags")
        self.assertEqual([(l["post_id"], l["tag_id"]) for l in links], [(post["id"], two["id"])])

        self.assertEqual(self.client.delete("/api/blog/posts/later").status_code, 200)
        self.assertEqual(self.db.count("blog_post_tags"), 0)

    def test_category_delete_refused_while_in_use(self):
        category = self.client.post("/api/blog/categories", json={"name": "Guides"}).json()["category"]
        self._post("Guide", category_id=category["id"])
        response = self.client.delete(f"/api/blog/categories/{category['id']}")
        self.assertEqual(response.status_code, 400)
        listed = self.client.get("/api/blog/categories").json()["categories"]
        self.assertEqual(listed[0]["post_count"], 1)

    def test_unknown_tag_rejects_write(self):
        response = self.client.post("/api/blog/posts", json={"title": "Hello", "tag_ids": ["nope"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid tag selected")
        self.assertEqual(self.db.count("blog_posts"), 0)

        tag = self.client.post("/api/blog/tags", json={"name": "Design"}).json()["tag"]
        self._post("Kept", tag_ids=[tag["id"]])
        bad_update = self.client.put(
            "/api/blog/posts/kept", json={"title": "Renamed", "tag_ids": ["nope"]}
        )
        self.assertEqual(bad_update.status_code, 400)
        post = self.db.find_one("blog_posts", [])
        self.assertEqual(post["title"], "Kept")
        self.assertEqual([link["tag_id"] for link in self.db.select("blog_post_tags")], [tag["id"]])

    def test_non_text_names_are_rejected(self):
        response = self.client.post("/api/blog/categories", json={"name": 5})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Name is required")
        self.assertEqual(self.client.post("/api/blog/tags", json={"name": ["x"]}).status_code, 400)
        tag = self.client.post("/api/blog/tags", json={"name": "Expos"}).json()["tag"]
        renamed = self.client.put(f"/api/blog/tags/{tag['id']}", json={"name": 3})
        self.assertEqual(renamed.status_code, 400)

    def test_tag_crud(self):
        tag = self.client.post("/api/blog/tags", json={"name": "Trade Shows"}).json()["tag"]
        self.assertEqual(tag["slug"], "trade-shows")
        self.assertEqual(tag["color"], "#6B7280")
        renamed = self.client.put(f"/api/blog/tags/{tag['id']}", json={"name": "Expos"})
        self.assertEqual(renamed.json()["tag"]["slug"], "expos")
        self.assertEqual(self.client.delete(f"/api/blog/tags/{tag['id']}").status_code, 200)
        self.assertEqual(self.client.get("/api/blog/tags").json()["tags"], [])


if __name__ == "__main__":
    unittest.main()
