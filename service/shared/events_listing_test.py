import unittest
from datetime import date

from shared import events_listing
from shared.events_listing import CarouselWindow


def _event(title, start=None, end=None, date_range=None):
    return {
        "title": title,
        "start_date": start,
        "end_date": end,
        "date_range": date_range,
    }


class MonthLabelTest(unittest.TestCase):
    def test_all_means_no_filter(self):
        self.assertIsNone(events_listing.parse_month_label("All"))
        self.assertIsNone(events_listing.parse_month_label("all"))
        self.assertIsNone(events_listing.parse_month_label(""))

    def test_month_and_year(self):
        self.assertEqual(events_listing.parse_month_label("June 2025"), (2025, 6))
        self.assertEqual(events_listing.parse_month_label("jun 2025"), (2025, 6))
        self.assertEqual(events_listing.parse_month_label("Sept 2025"), (2025, 9))

    def test_month_without_year(self):
        self.assertEqual(events_listing.parse_month_label("May"), (None, 5))

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            events_listing.parse_month_label("Smarch 2025")
        with self.assertRaises(ValueError):
            events_listing.parse_month_label("06/2025")


class DateRangeTextTest(unittest.TestCase):
    def test_same_month_range(self):
        self.assertEqual(
            events_listing.parse_date_range_text("27 - 29 MAY 2025"),
            (date(2025, 5, 27), date(2025, 5, 29)),
        )

    def test_cross_month_range(self):
        self.assertEqual(
            events_listing.parse_date_range_text("24 MAY - 1 JUN 2025"),
            (date(2025, 5, 24), date(2025, 6, 1)),
        )

    def test_cross_year_range(self):
        self.assertEqual(
            events_listing.parse_date_range_text("30 DEC 2025 - 2 JAN 2026"),
            (date(2025, 12, 30), date(2026, 1, 2)),
        )

    def test_cross_year_range_without_start_year(self):
        self.assertEqual(
            events_listing.parse_date_range_text("30 DEC - 2 JAN 2026"),
            (date(2025, 12, 30), date(2026, 1, 2)),
        )

    def test_single_day(self):
        self.assertEqual(
            events_listing.parse_date_range_text("27 MAY 2025"),
            (date(2025, 5, 27), date(2025, 5, 27)),
        )

    def test_unparseable(self):
        self.assertIsNone(events_listing.parse_date_range_text("TBA"))
        self.assertIsNone(events_listing.parse_date_range_text("31 FEB 2025"))
        self.assertIsNone(events_listing.parse_date_range_text(""))


class MonthFilterTest(unittest.TestCase):
    def setUp(self):
        self.events = [
            _event("Arab Health", "2025-05-30", "2025-06-02"),
            _event("Gitex", "2025-10-13", "2025-10-17"),
            _event("Big 5", date_range="24 MAY - 1 JUN 2025"),
            _event("Interiors", date_range="Sometime in JUNE 2024"),
            _event("Hotel Show", "2025-06-10"),
        ]

    def test_structured_dates_overlap_month(self):
        event = self.events[0]
        self.assertTrue(events_listing.event_matches_month(event, 2025, 5))
        self.assertTrue(events_listing.event_matches_month(event, 2025, 6))
        self.assertFalse(events_listing.event_matches_month(event, 2025, 7))
        self.assertFalse(events_listing.event_matches_month(event, 2024, 6))

    def test_month_without_year_matches_any_year(self):
        self.assertTrue(events_listing.event_matches_month(self.events[3], None, 6))

    def test_free_text_fallback_checks_year(self):
        event = self.events[3]
        self.assertTrue(events_listing.event_matches_month(event, 2024, 6))
        self.assertFalse(events_listing.event_matches_month(event, 2025, 6))
        self.assertFalse(events_listing.event_matches_month(event, 2024, 7))

    def test_filter_keeps_original_order(self):
        filtered = events_listing.filter_events_by_month(self.events, "June 2025")
        self.assertEqual(
            [event["title"] for event in filtered],
            ["Arab Health", "Big 5", "Hotel Show"],
        )

    def test_all_returns_everything(self):
        filtered = events_listing.filter_events_by_month(self.events, "All")
        self.assertEqual(filtered, self.events)
        self.assertIsNot(filtered, self.events)

    def test_filter_options_are_chronological(self):
        self.assertEqual(
            events_listing.month_filter_options(self.events),
            ["All", "June 2024", "May 2025", "June 2025", "October 2025"],
        )

    def test_filter_options_include_free_text_months(self):
        event = _event("Index", date_range="JUNE 2025")
        self.assertEqual(events_listing.month_filter_options([event]), ["All", "June 2025"])
        self.assertEqual(events_listing.filter_events_by_month([event], "June 2025"), [event])
        undated = _event("Coming soon", date_range="Dates to be announced")
        self.assertEqual(events_listing.month_filter_options([undated]), ["All"])

    def test_long_running_event_matches_late_months(self):
        event = _event("Expo City", "2025-01-01", "2027-06-30")
        self.assertTrue(events_listing.event_matches_month(event, 2027, 3))
        self.assertTrue(events_listing.event_matches_month(event, 2027, 6))
        self.assertFalse(events_listing.event_matches_month(event, 2027, 7))
        self.assertTrue(events_listing.event_matches_month(event, None, 11))

    def test_filter_options_without_events(self):
        self.assertEqual(events_listing.month_filter_options([]), ["All"])


class FormatDateRangeTest(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(events_listing.format_date_range("2025-05-27"), "27 MAY 2025")
        self.assertEqual(
            events_listing.format_date_range("2025-05-27", "2025-05-29"),
            "27 - 29 MAY 2025",
        )
        self.assertEqual(
            events_listing.format_date_range("2025-05-24", "2025-06-01"),
            "24 MAY - 1 JUN 2025",
        )
        self.assertEqual(
            events_listing.format_date_range("2025-12-30", "2026-01-02"),
            "30 DEC 2025 - 2 JAN 2026",
        )

    def test_missing_start(self):
        self.assertEqual(events_listing.format_date_range(None, "2025-01-01"), "")


class CarouselWindowTest(unittest.TestCase):
    def test_stops_at_the_ends(self):
        window = CarouselWindow(total=5)
        self.assertEqual(window.max_index, 2)
        self.assertFalse(window.can_go_previous)
        window = window.next().next().next()
        self.assertEqual(window.index, 2)
        self.assertFalse(window.can_go_next)
        self.assertTrue(window.can_go_previous)
        self.assertEqual(window.previous().index, 1)
        self.assertEqual(CarouselWindow(total=5).previous().index, 0)

    def test_wraps_when_asked(self):
        window = CarouselWindow(total=5, index=2, wrap=True)
        self.assertEqual(window.next().index, 0)
        self.assertEqual(window.next().previous().index, 2)

    def test_clamps_index(self):
        self.assertEqual(CarouselWindow(total=5, index=10).index, 2)
        self.assertEqual(CarouselWindow(total=5, index=-3).index, 0)
        self.assertEqual(CarouselWindow(total=2, index=1).index, 0)

    def test_rejects_invalid_sizes(self):
        with self.assertRaises(ValueError):
            CarouselWindow(total=3, cards_to_show=0)
        with self.assertRaises(ValueError):
            CarouselWindow(total=-1)

    def test_visible_slice_and_offset(self):
        window = CarouselWindow(total=5, index=1)
        self.assertEqual(window.visible(["a", "b", "c", "d", "e"]), ["b", "c", "d"])
        self.assertAlmostEqual(window.offset_percent, -100.0 / 3)
        self.assertEqual(window.reset().index, 0)

    def test_navigation_visibility(self):
        self.assertFalse(CarouselWindow(total=3).show_navigation)
        self.assertTrue(CarouselWindow(total=4).show_navigation)


class BuildListingTest(unittest.TestCase):
    def test_listing_for_month(self):
        events = [
            _event("A", "2025-06-01"),
            _event("B", "2025-07-01"),
            _event("C", "2025-06-05"),
        ]
        listing = events_listing.build_listing(events, month="June 2025", index=4)
        self.assertEqual(listing["filters"], ["All", "June 2025", "July 2025"])
        self.assertEqual(listing["selected_filter"], "June 2025")
        self.assertEqual([e["title"] for e in listing["events"]], ["A", "C"])
        self.assertEqual(listing["carousel"]["index"], 0)
        self.assertFalse(listing["carousel"]["show_navigation"])
        self.assertEqual(len(listing["visible_events"]), 2)


if __name__ == "__main__":
    unittest.main()
