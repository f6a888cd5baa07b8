"""
Email notifications for form submissions, relayed through Web3Forms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol
from urllib.parse import urlparse

import requests

from shared.time_utils import utc_now
from shared.types import FormType

logger = logging.getLogger(__name__)

SUBJECTS = {
    FormType.CONTACT: "New Contact Form Submission",
    FormType.BOOTH: "New Booth Requirements Submission",
    FormType.EVENT: "New Event Inquiry Submission",
    FormType.QUOTATION: "New Quotation Request Submission",
}

FORM_TYPE_LABELS = {
    FormType.CONTACT: "Contact Form",
    FormType.BOOTH: "Booth Requirements",
    FormType.EVENT: "Event Inquiry",
    FormType.QUOTATION: "Quotation Request",
}

FORM_TYPE_MARKERS = (
    ("[CONTACT FORM]", FormType.CONTACT),
    ("[BOOTH REQUIREMENTS]", FormType.BOOTH),
    ("[EVENT INQUIRY]", FormType.EVENT),
    ("[QUOTATION REQUEST]", FormType.QUOTATION),
)

RULE = "-" * 60
BANNER = "=" * 60


class NotificationError(Exception):
    """Raised when the email relay rejects or cannot be reached."""


def form_type_from_message(message: Optional[str]) -> FormType:
    """The public forms prefix messages with a marker naming the form."""
    for marker, form_type in FORM_TYPE_MARKERS:
        if marker in (message or ""):
            return form_type
    return FormType.CONTACT


def _source(referrer: Optional[str]) -> str:
    if not referrer:
        return "Direct Access"
    return urlparse(referrer).path or "/"


def format_email_content(data: dict, now: Optional[datetime] = None) -> str:
    form_type = FormType(data.get("form_type") or FormType.CONTACT.value)
    label = FORM_TYPE_LABELS[form_type]
    submitted = (now or utc_now()).strftime("%A, %B %d, %Y %H:%M %Z")

    lines = [
        BANNER,
        f"NEW {label.upper()} SUBMISSION",
        BANNER,
        "",
        "CUSTOMER INFORMATION",
        RULE,
        f"Name: {data.get('name')}",
        f"Email: {data.get('email')}",
    ]
    for key, caption in (
        ("phone", "Phone"),
        ("company_name", "Company"),
        ("exhibition_name", "Exhibition"),
        ("budget", "Budget"),
    ):
        if data.get(key):
            lines.append(f"{caption}: {data[key]}")

    lines += ["", "CUSTOMER MESSAGE", RULE, data.get("message") or ""]

    if data.get("event_id"):
        lines += ["", "EVENT DETAILS", RULE, f"Event ID: {data['event_id']}"]
        if data.get("event_title"):
            lines.append(f"Event: {data['event_title']}")

    lines += [
        "",
        "SUBMISSION DETAILS",
        RULE,
        f"Form Type: {label}",
        f"Source: {_source(data.get('referrer'))}",
    ]
    if data.get("submission_url"):
        lines.append(f"Admin Panel: {data['submission_url']}")
    lines += [
        f"Submitted: {submitted}",
        BANNER,
        "This is an automated notification from the website.",
        "Reply to this email to respond directly to the customer.",
        BANNER,
    ]
    return "\n".join(lines)


def build_payload(data: dict, access_key: str, now: Optional[datetime] = None) -> dict:
    """The JSON body Web3Forms expects for one submission."""
    form_type = FormType(data.get("form_type") or FormType.CONTACT.value)
    return {
        "access_key": access_key,
        "subject": data.get("subject") or SUBJECTS[form_type],
        "email": data.get("email"),
        "replyto": data.get("email"),
        "name": data.get("name"),
        "exhibition_name": data.get("exhibition_name"),
        "company_name": data.get("company_name"),
        "phone": data.get("phone"),
        "budget": data.get("budget"),
        "message": format_email_content(data, now=now),
        "form_type": form_type.value,
        "event_id": data.get("event_id"),
        "submission_url": data.get("submission_url"),
        "referrer": data.get("referrer"),
        "botcheck": False,
    }


class Notifier(Protocol):
    def send(self, data: dict) -> dict:
        ...


@dataclass
class InMemoryNotifier:
    """Records notifications instead of sending them; can be told to fail."""

    sent: list = field(default_factory=list)
    failures_remaining: int = 0

    def send(self, data: dict) -> dict:
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise NotificationError("Simulated relay failure")
        payload = build_payload(data, access_key="test")
        self.sent.append(payload)
        return {"success": True, "message": "recorded"}


@dataclass
class Web3FormsNotifier:
    access_key: str
    url: str = "https://api.web3forms.com/submit"
    timeout: float = 15.0

    def __post_init__(self):
        self.session = requests.Session()

    def send(self, data: dict) -> dict:
        payload = build_payload(data, self.access_key)
        logger.info(
            "Sending Web3Forms notification: subject=%s form_type=%s",
            payload["subject"],
            payload["form_type"],
        )
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NotificationError(f"Web3Forms request failed: {exc}") from exc
        if not result.get("success"):
            message = (result.get("body") or {}).get("message") or result.get("message")
            raise NotificationError(f"Web3Forms API error: {message or 'Unknown error'}")
        return result
