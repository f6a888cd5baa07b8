"""
Heuristic spam checks for the public enquiry forms.

The contact form uses a weighted score (flagged at 0.5); the event enquiry
form uses a stricter any-signal check because it carries fewer fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

SPAM_THRESHOLD = 0.5

CONTACT_SPAM_KEYWORDS = (
    "viagra",
    "casino",
    "lottery",
    "winner",
    "congratulations",
    "click here",
    "free money",
    "make money fast",
    "work from home",
    "guaranteed",
    "no risk",
    "limited time",
    "act now",
)

EVENT_SPAM_KEYWORDS = (
    "viagra",
    "casino",
    "lottery",
    "winner",
    "congratulations",
    "click here",
    "free money",
    "make money fast",
    "work from home",
    "weight loss",
    "lose weight",
    "diet pills",
    "crypto",
    "bitcoin",
)

SUSPICIOUS_EMAIL_PATTERNS = (
    re.compile(r"\d{5,}@"),
    re.compile(r"@[^.]+\.(tk|ml|ga|cf)$"),
)
DISPOSABLE_EMAIL_DOMAINS = ("tempmail", "guerrillamail", "10minutemail", "mailinator")
REPEATED_CHARACTERS = re.compile(r"(.)\1{4,}")
URL_PATTERN = re.compile(r"https?://")


@dataclass
class SpamCheck:
    is_spam: bool
    score: float
    reasons: list[str] = field(default_factory=list)


def score_contact_submission(
    name: str,
    email: str,
    message: str,
    company_name: Optional[str] = None,
) -> SpamCheck:
    score = 0.0
    reasons: list[str] = []
    message = message or ""
    text = f"{name or ''} {message} {company_name or ''}".lower()

    for keyword in CONTACT_SPAM_KEYWORDS:
        if keyword in text:
            score += 0.3
            reasons.append(f"Contains spam keyword: {keyword}")

    if len(message) > 20:
        caps_ratio = sum(1 for ch in message if "A" <= ch <= "Z") / len(message)
        if caps_ratio > 0.5:
            score += 0.2
            reasons.append("Excessive use of capital letters")

    for pattern in SUSPICIOUS_EMAIL_PATTERNS:
        if pattern.search(email or ""):
            score += 0.3
            reasons.append("Suspicious email pattern")

    if len(message) < 10:
        score += 0.2
        reasons.append("Message too short")
    elif len(message) > 2000:
        score += 0.1
        reasons.append("Message unusually long")

    if REPEATED_CHARACTERS.search(message):
        score += 0.2
        reasons.append("Contains repeated characters")

    # Rounded so 0.3 + 0.2 lands on the threshold instead of just under it.
    score = round(score, 4)
    return SpamCheck(
        is_spam=score >= SPAM_THRESHOLD, score=min(score, 1.0), reasons=reasons
    )


def is_event_submission_spam(name: str, email: str, message: Optional[str]) -> bool:
    raw = f"{name or ''} {email or ''} {message or ''}"
    text = raw.lower()

    if any(keyword in text for keyword in EVENT_SPAM_KEYWORDS):
        return True
    if len(URL_PATTERN.findall(text)) > 2:
        return True
    # Caps are counted on the original text; the lowered copy never has any.
    letters = sum(1 for ch in raw if "A" <= ch <= "Z")
    if letters > len(raw) * 0.3:
        return True
    if REPEATED_CHARACTERS.search(text):
        return True
    domain = (email or "").split("@")[1].lower() if "@" in (email or "") else ""
    return any(disposable in domain for disposable in DISPOSABLE_EMAIL_DOMAINS)
