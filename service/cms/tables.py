"""
SQLAlchemy schema for every content table.

The declarative rows double as the schema for the in-memory client: column
names, defaults, nullability, uniqueness and foreign keys are read from
``Base.metadata`` by both backends.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _id():
    return Column(String(36), primary_key=True)


def _timestamps():
    return (
        Column(String(40), nullable=False),
        Column(String(40), nullable=False),
    )


class EventCategoryRow(Base):
    __tablename__ = "event_categories"

    id = _id()
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text)
    color = Column(String, nullable=False, default="#3B82F6")
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at, updated_at = _timestamps()
    created_by = Column(String)
    updated_by = Column(String)


class EventRow(Base):
    __tablename__ = "events"

    id = _id()
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text)
    detailed_description = Column(Text)
    short_description = Column(Text)
    category_id = Column(String(36), ForeignKey("event_categories.id"), index=True)
    organizer = Column(String)
    organized_by = Column(String)
    venue = Column(String)
    event_type = Column(String)
    industry = Column(String)
    audience = Column(String)
    start_date = Column(String(40), index=True)
    end_date = Column(String(40))
    date_range = Column(String)
    featured_image_url = Column(String)
    hero_image_url = Column(String)
    hero_image_credit = Column(String)
    logo_image_url = Column(String)
    logo_text = Column(String)
    logo_subtext = Column(String)
    meta_title = Column(String)
    meta_description = Column(Text)
    meta_keywords = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at, updated_at = _timestamps()
    published_at = Column(String(40))
    created_by = Column(String)
    updated_by = Column(String)


class EventImageRow(Base):
    __tablename__ = "event_images"

    id = _id()
    event_id = Column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filename = Column(String, nullable=False)
    original_filename = Column(String)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String)
    alt_text = Column(String)
    caption = Column(String)
    width = Column(Integer)
    height = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    image_type = Column(String, nullable=False, default="gallery")
    created_at, updated_at = _timestamps()
    uploaded_by = Column(String)


class EventsHeroRow(Base):
    __tablename__ = "events_hero"

    id = _id()
    main_heading = Column(String, nullable=False)
    sub_heading = Column(String)
    background_image_url = Column(String)
    background_overlay_opacity = Column(Float, nullable=False, default=0.5)
    background_overlay_color = Column(String, nullable=False, default="#000000")
    text_color = Column(String, nullable=False, default="#FFFFFF")
    heading_font_size = Column(String, nullable=False, default="responsive")
    subheading_font_size = Column(String)
    text_alignment = Column(String, default="center")
    button_text = Column(String)
    button_url = Column(String)
    button_style = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()
    created_by = Column(String)
    updated_by = Column(String)


class EventFormSubmissionRow(Base):
    __tablename__ = "event_form_submissions"

    id = _id()
    event_id = Column(
        String(36), ForeignKey("events.id", ondelete="SET NULL"), index=True
    )
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String)
    company_name = Column(String)
    exhibition_name = Column(String)
    budget = Column(String)
    message = Column(Text)
    attachment_url = Column(String)
    attachment_filename = Column(String)
    attachment_size = Column(Integer)
    status = Column(String, nullable=False, default="new", index=True)
    is_spam = Column(Boolean, nullable=False, default=False)
    spam_score = Column(Float, nullable=False, default=0.0)
    admin_notes = Column(Text)
    handled_by = Column(String)
    handled_at = Column(String(40))
    ip_address = Column(String)
    user_agent = Column(String)
    referrer = Column(String)
    created_at, updated_at = _timestamps()


class ContactFormSubmissionRow(Base):
    __tablename__ = "contact_form_submissions"

    id = _id()
    name = Column(String, nullable=False)
    exhibition_name = Column(String)
    company_name = Column(String)
    email = Column(String, nullable=False)
    phone = Column(String)
    budget = Column(String)
    message = Column(Text, nullable=False)
    attachment_url = Column(String)
    attachment_filename = Column(String)
    attachment_size = Column(Integer)
    attachment_type = Column(String)
    agreed_to_terms = Column(Boolean, nullable=False, default=False)
    form_type = Column(String, nullable=False, default="contact")
    status = Column(String, nullable=False, default="new", index=True)
    is_spam = Column(Boolean, nullable=False, default=False)
    spam_score = Column(Float, nullable=False, default=0.0)
    admin_notes = Column(Text)
    handled_by = Column(String)
    handled_at = Column(String(40))
    ip_address = Column(String)
    user_agent = Column(String)
    referrer = Column(String)
    created_at, updated_at = _timestamps()


class ContactHeroSectionRow(Base):
    __tablename__ = "contact_hero_section"

    id = _id()
    title = Column(String, nullable=False)
    subtitle = Column(String)
    background_image_url = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class ContactFormSettingsRow(Base):
    __tablename__ = "contact_form_settings"

    id = _id()
    form_title = Column(String, nullable=False)
    form_subtitle = Column(String)
    success_message = Column(String)
    success_description = Column(Text)
    sidebar_phone = Column(String)
    sidebar_email = Column(String)
    sidebar_address = Column(Text)
    enable_file_upload = Column(Boolean, nullable=False, default=True)
    max_file_size_mb = Column(Integer, nullable=False, default=10)
    allowed_file_types = Column(JSON)
    require_terms_agreement = Column(Boolean, nullable=False, default=True)
    terms_text = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class ContactGroupCompanyRow(Base):
    __tablename__ = "contact_group_companies"

    id = _id()
    region = Column(String, nullable=False)
    description = Column(Text)
    address = Column(Text)
    phone = Column(String)
    email = Column(String)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class ContactMapSettingsRow(Base):
    __tablename__ = "contact_map_settings"

    id = _id()
    map_embed_url = Column(Text, nullable=False)
    map_title = Column(String)
    map_height = Column(Integer, nullable=False, default=400)
    parking_title = Column(String)
    parking_description = Column(Text)
    parking_background_image = Column(String)
    parking_maps_download_url = Column(String)
    google_maps_url = Column(String)
    show_parking_section = Column(Boolean, nullable=False, default=True)
    show_map_section = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class BlogCategoryRow(Base):
    __tablename__ = "blog_categories"

    id = _id()
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text)
    color = Column(String, nullable=False, default="#3B82F6")
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at, updated_at = _timestamps()


class BlogTagRow(Base):
    __tablename__ = "blog_tags"

    id = _id()
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    color = Column(String, nullable=False, default="#6B7280")
    created_at, updated_at = _timestamps()


class BlogPostRow(Base):
    __tablename__ = "blog_posts"

    id = _id()
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    excerpt = Column(Text)
    content = Column(Text)
    meta_description = Column(Text)
    meta_keywords = Column(String)
    featured_image_url = Column(String)
    featured_image_alt = Column(String)
    hero_image_url = Column(String)
    hero_image_alt = Column(String)
    status = Column(String, nullable=False, default="draft", index=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    og_title = Column(String)
    og_description = Column(Text)
    og_image_url = Column(String)
    author_id = Column(String)
    category_id = Column(String(36), ForeignKey("blog_categories.id"), index=True)
    view_count = Column(Integer, nullable=False, default=0)
    scheduled_publish_at = Column(String(40))
    published_at = Column(String(40))
    created_at, updated_at = _timestamps()


class BlogPostTagRow(Base):
    __tablename__ = "blog_post_tags"
    __table_args__ = (UniqueConstraint("post_id", "tag_id"),)

    id = _id()
    post_id = Column(
        String(36), ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False
    )
    tag_id = Column(
        String(36), ForeignKey("blog_tags.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(String(40), nullable=False)


class CityRow(Base):
    __tablename__ = "cities"

    id = _id()
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    subtitle = Column(String)
    hero_image = Column(String)
    description = Column(Text)
    country_code = Column(String(8))
    timezone = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)
    phone = Column(String)
    email = Column(String)
    address = Column(Text)
    working_hours = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at, updated_at = _timestamps()


class CityServiceRow(Base):
    __tablename__ = "city_services"

    id = _id()
    city_id = Column(
        String(36), ForeignKey("cities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at, updated_at = _timestamps()


class PageSectionRow(Base):
    __tablename__ = "page_sections"
    __table_args__ = (UniqueConstraint("page", "section"),)

    id = _id()
    page = Column(String, nullable=False)
    section = Column(String, nullable=False)
    content = Column(JSON, nullable=False, default=lambda: {})
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class SectionItemRow(Base):
    __tablename__ = "section_items"

    id = _id()
    section_id = Column(
        String(36),
        ForeignKey("page_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(JSON, nullable=False, default=lambda: {})
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at, updated_at = _timestamps()


class MediaAssetRow(Base):
    __tablename__ = "media_assets"
    __table_args__ = (UniqueConstraint("bucket", "path"),)

    id = _id()
    bucket = Column(String, nullable=False, index=True)
    path = Column(String, nullable=False)
    folder = Column(String)
    filename = Column(String, nullable=False)
    original_filename = Column(String)
    mime_type = Column(String)
    file_size = Column(Integer)
    width = Column(Integer)
    height = Column(Integer)
    alt_text = Column(String)
    created_at, updated_at = _timestamps()


class PrivacyPolicyRow(Base):
    __tablename__ = "privacy_policy"

    id = _id()
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    meta_title = Column(String)
    meta_description = Column(Text)
    meta_keywords = Column(String)
    og_title = Column(String)
    og_description = Column(Text)
    og_image_url = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    contact_email = Column(String)
    version = Column(Integer, nullable=False, default=1)
    last_updated_by = Column(String)
    created_at, updated_at = _timestamps()


class CompanyProfileDocumentRow(Base):
    __tablename__ = "company_profile_documents"

    id = _id()
    filename = Column(String, nullable=False)
    original_filename = Column(String)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String)
    title = Column(String, nullable=False)
    description = Column(Text)
    version = Column(String, nullable=False, default="1.0")
    is_active = Column(Boolean, nullable=False, default=True)
    is_current = Column(Boolean, nullable=False, default=False)
    uploaded_by = Column(String)
    approved_by = Column(String)
    approved_at = Column(String(40))
    created_at, updated_at = _timestamps()
