"""
Catalog of the editable sections on each marketing page.

Every section is stored as one ``page_sections`` row holding a JSON content
object; sections with ``has_items`` also own ordered ``section_items`` rows
(benefit cards, FAQ entries, gallery images, process steps).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

SEO_FIELDS = ("meta_title", "meta_description")


@dataclass(frozen=True)
class SectionSpec:
    key: str
    title: str
    required_fields: tuple[str, ...] = ()
    has_items: bool = False
    item_required_fields: tuple[str, ...] = ()
    bucket: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "required_fields": list(self.required_fields),
            "has_items": self.has_items,
            "item_required_fields": list(self.item_required_fields),
            "bucket": self.bucket,
        }


def _hero(bucket: str) -> SectionSpec:
    return SectionSpec("hero", "Hero", ("title",), bucket=bucket)


def _portfolio(bucket: str = "portfolio-images") -> SectionSpec:
    return SectionSpec(
        "portfolio",
        "Portfolio",
        ("heading",),
        has_items=True,
        item_required_fields=("image_url",),
        bucket=bucket,
    )


def _seo() -> SectionSpec:
    return SectionSpec("seo", "SEO", SEO_FIELDS)


PAGE_CATALOG: dict[str, tuple[SectionSpec, ...]] = {
    "home": (
        _hero("hero-images"),
        SectionSpec(
            "business",
            "Business Section",
            ("heading", "description"),
            bucket="business-images",
        ),
        SectionSpec(
            "dynamic-cell",
            "Dynamic Cell",
            ("heading",),
            has_items=True,
            item_required_fields=("title",),
            bucket="dynamic-cell-images",
        ),
        SectionSpec(
            "essential-support",
            "Essential Support",
            ("heading",),
            has_items=True,
            item_required_fields=("title", "description"),
        ),
        SectionSpec(
            "new-company",
            "New Company",
            ("heading", "description"),
            bucket="new-company-images",
        ),
        SectionSpec(
            "setup-process",
            "Setup Process",
            ("heading",),
            has_items=True,
            item_required_fields=("title", "description"),
        ),
        SectionSpec(
            "why-section",
            "Why Choose Us",
            ("heading",),
            has_items=True,
            item_required_fields=("title",),
        ),
        SectionSpec(
            "instagram-feed",
            "Instagram Feed",
            ("heading",),
            has_items=True,
            item_required_fields=("image_url",),
            bucket="images",
        ),
        _seo(),
    ),
    "about": (
        SectionSpec("hero", "Hero", ("title",), bucket="about-hero"),
        SectionSpec(
            "main",
            "Main Section",
            ("section_label", "main_heading", "description"),
            bucket="about-main",
        ),
        SectionSpec(
            "description",
            "Description",
            ("heading", "description"),
            bucket="about-description",
        ),
        SectionSpec(
            "dedication",
            "Dedication",
            ("heading",),
            has_items=True,
            item_required_fields=("title", "description"),
            bucket="about-dedication",
        ),
        _seo(),
    ),
    "kiosk": (
        _hero("hero-images"),
        SectionSpec("content", "Content", ("heading", "description")),
        SectionSpec(
            "benefits",
            "Benefits",
            ("heading", "description"),
            has_items=True,
            item_required_fields=("text",),
            bucket="images",
        ),
        SectionSpec(
            "manufacturers",
            "Manufacturers",
            ("heading", "description"),
        ),
        SectionSpec(
            "consultancy",
            "Consultancy",
            (
                "heading",
                "phone_number",
                "phone_display",
                "phone_href",
                "additional_text",
            ),
        ),
        _seo(),
    ),
    "custom-stand": (
        _hero("hero-images"),
        SectionSpec(
            "leading-contractor", "Leading Contractor", ("heading", "description")
        ),
        SectionSpec("paragraph", "Paragraph Section", ("description",)),
        SectionSpec(
            "striking-customized",
            "Striking & Customized",
            ("heading", "description"),
            bucket="images",
        ),
        SectionSpec(
            "looking-for-stands",
            "Looking For Stands",
            ("heading",),
            has_items=True,
            item_required_fields=("text",),
        ),
        _portfolio(),
        SectionSpec(
            "faq",
            "FAQ",
            ("heading",),
            has_items=True,
            item_required_fields=("question", "answer"),
        ),
        _seo(),
    ),
    "double-decker-stand": (
        _hero("hero-images"),
        SectionSpec("paragraph", "Paragraph Section", ("description",)),
        SectionSpec(
            "unique-quality",
            "Unique Quality",
            ("heading", "description"),
            bucket="images",
        ),
        SectionSpec(
            "communication", "Communication", ("heading", "description")
        ),
        _portfolio(),
        _seo(),
    ),
    "expo-pavilion-stand": (
        _hero("hero-images"),
        SectionSpec("intro", "Introduction", ("heading", "description")),
        SectionSpec(
            "exceptional-design",
            "Exceptional Design",
            ("heading",),
            has_items=True,
            item_required_fields=("title",),
            bucket="images",
        ),
        _portfolio(),
        _seo(),
    ),
    "conference": (
        _hero("hero-images"),
        SectionSpec(
            "solution", "Conference Solution", ("heading", "description")
        ),
        SectionSpec(
            "event-management-services",
            "Event Management Services",
            ("heading",),
            has_items=True,
            item_required_fields=("title",),
        ),
        SectionSpec(
            "conference-management-services",
            "Conference Management Services",
            ("heading",),
            has_items=True,
            item_required_fields=("title",),
        ),
        SectionSpec("communicate", "Communicate", ("heading", "description")),
        SectionSpec(
            "events-portfolio",
            "Events Portfolio",
            ("heading",),
            has_items=True,
            item_required_fields=("image_url",),
            bucket="portfolio-images",
        ),
        _seo(),
    ),
    "portfolio": (
        _hero("hero-images"),
        SectionSpec(
            "gallery",
            "Portfolio Gallery",
            (),
            has_items=True,
            item_required_fields=("image_url",),
            bucket="portfolio-images",
        ),
        _seo(),
    ),
    "events": (
        SectionSpec("intro", "Introduction", ("heading",)),
        _seo(),
    ),
}


class UnknownSection(LookupError):
    """Raised when a page or section key is not in the catalog."""


def list_pages() -> list[dict]:
    return [
        {"page": page, "sections": [spec.as_dict() for spec in specs]}
        for page, specs in PAGE_CATALOG.items()
    ]


def get_section_spec(page: str, section: str) -> SectionSpec:
    specs = PAGE_CATALOG.get(page)
    if specs is None:
        raise UnknownSection(f"Unknown page: {page}")
    for spec in specs:
        if spec.key == section:
            return spec
    raise UnknownSection(f"Unknown section '{section}' on page '{page}'")


def storage_buckets() -> list[str]:
    """Every bucket referenced by a catalog section, in first-seen order."""
    buckets: list[str] = []
    for specs in PAGE_CATALOG.values():
        for spec in specs:
            if spec.bucket and spec.bucket not in buckets:
                buckets.append(spec.bucket)
    return buckets


def _missing(required: tuple[str, ...], content: Optional[Mapping]) -> list[str]:
    content = content or {}
    missing = []
    for name in required:
        value = content.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def validate_section_content(spec: SectionSpec, content: Optional[Mapping]) -> list[str]:
    return _missing(spec.required_fields, content)


def validate_item_content(spec: SectionSpec, content: Optional[Mapping]) -> list[str]:
    return _missing(spec.item_required_fields, content)
