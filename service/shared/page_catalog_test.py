import unittest

from shared import page_catalog


class PageCatalogTest(unittest.TestCase):
    def test_every_page_has_seo_section(self):
        for page, specs in page_catalog.PAGE_CATALOG.items():
            keys = [spec.key for spec in specs]
            self.assertIn("seo", keys, page)
            self.assertEqual(len(keys), len(set(keys)), page)

    def test_lookup(self):
        spec = page_catalog.get_section_spec("kiosk", "benefits")
        self.assertTrue(spec.has_items)
        with self.assertRaises(page_catalog.UnknownSection):
            page_catalog.get_section_spec("kiosk", "nope")
        with self.assertRaises(page_catalog.UnknownSection):
            page_catalog.get_section_spec("nope", "hero")

    def test_validation_reports_blank_fields(self):
        spec = page_catalog.get_section_spec("kiosk", "consultancy")
        missing = page_catalog.validate_section_content(
            spec,
            {
                "heading": "Talk to us",
                "phone_number": "  ",
                "phone_display": "+971 4 000 0000",
            },
        )
        self.assertEqual(missing, ["phone_number", "phone_href", "additional_text"])

    def test_item_validation(self):
        spec = page_catalog.get_section_spec("custom-stand", "faq")
        self.assertEqual(
            page_catalog.validate_item_content(spec, {"question": "How long?"}),
            ["answer"],
        )
        self.assertEqual(page_catalog.validate_item_content(spec, None), ["question", "answer"])

    def test_buckets_are_unique(self):
        buckets = page_catalog.storage_buckets()
        self.assertEqual(len(buckets), len(set(buckets)))
        self.assertIn("portfolio-images", buckets)

    def test_list_pages(self):
        pages = page_catalog.list_pages()
        self.assertEqual(pages[0]["page"], "home")
        self.assertEqual(pages[0]["sections"][0]["key"], "hero")


if __name__ == "__main__":
    unittest.main()
