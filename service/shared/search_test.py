import unittest

from shared import search


class SearchTest(unittest.TestCase):
    def setUp(self):
        self.events = [
            {
                "title": "Dubai Expo Week",
                "description": "Trade expo",
                "organizer": "DWTC",
                "venue": "Expo City",
                "is_featured": False,
            },
            {
                "title": "Hotel Show",
                "description": "Hospitality",
                "organizer": "Expo Partners",
                "venue": "DWTC",
                "is_featured": True,
            },
            {
                "title": "Gitex",
                "description": "Technology",
                "organizer": "DWTC",
                "venue": "DWTC",
                "is_featured": False,
            },
        ]

    def test_normalize_query(self):
        self.assertIsNone(search.normalize_query(" a "))
        self.assertIsNone(search.normalize_query(None))
        self.assertEqual(search.normalize_query(" expo "), "expo")

    def test_relevance_weights(self):
        self.assertEqual(search.relevance_score(self.events[0], "expo"), 6.0)
        self.assertEqual(search.relevance_score(self.events[1], "expo"), 2.0)
        self.assertEqual(search.relevance_score(self.events[2], "expo"), 0.0)

    def test_rank_events_sorts_without_mutating(self):
        ranked = search.rank_events(self.events, "dwtc")
        self.assertEqual(
            [event["title"] for event in ranked], ["Gitex", "Dubai Expo Week", "Hotel Show"]
        )
        self.assertEqual(ranked[0]["relevance_score"], 2.5)
        self.assertNotIn("relevance_score", self.events[0])

    def test_rank_events_keeps_order_when_not_sorting(self):
        ranked = search.rank_events(self.events, "dwtc", sort_by_score=False)
        self.assertEqual([event["title"] for event in ranked][0], "Dubai Expo Week")

    def test_suggestions_are_unique(self):
        suggestions = search.build_suggestions(self.events, "dwtc")
        self.assertEqual(
            suggestions, [{"text": "DWTC", "type": "organizer"}]
        )
        suggestions = search.build_suggestions(self.events, "expo", limit=2)
        self.assertEqual(
            suggestions,
            [
                {"text": "Dubai Expo Week", "type": "title"},
                {"text": "Expo Partners", "type": "organizer"},
            ],
        )


if __name__ == "__main__":
    unittest.main()
