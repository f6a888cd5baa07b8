from enum import Enum


class SubmissionStatus(str, Enum):
    """Lifecycle of a contact or event form submission."""

    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"
    SPAM = "spam"


class EventImageType(str, Enum):
    GALLERY = "gallery"
    FEATURED = "featured"
    HERO = "hero"
    LOGO = "logo"


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class FormType(str, Enum):
    """Kinds of enquiry forms on the public site."""

    CONTACT = "contact"
    BOOTH = "booth"
    EVENT = "event"
    QUOTATION = "quotation"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


# Columns on the events table that map to an uploaded image type.
EVENT_IMAGE_URL_COLUMNS = {
    EventImageType.FEATURED: "featured_image_url",
    EventImageType.HERO: "hero_image_url",
    EventImageType.LOGO: "logo_image_url",
}
