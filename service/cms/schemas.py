"""
Pydantic schemas for the CMS API.

Content payloads allow extra keys: the table schema decides which of them
are stored. Fields are optional where the handler reports a missing value
with its own 400 message.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    def values(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BulkEventAction(BaseModel):
    action: Optional[str] = None
    event_ids: Optional[list[str]] = None
    data: Optional[dict] = None


class BulkEventDelete(BaseModel):
    event_ids: Optional[list[str]] = None


class EventSearchRequest(BaseModel):
    query: str = ""
    filters: dict = Field(default_factory=dict)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: str = "relevance"
    sort_order: str = "desc"


class EventSubmissionPayload(ContentPayload):
    name: Optional[str] = None
    email: Optional[str] = None
    event_id: Optional[str] = None
    message: Optional[str] = None


class BulkSubmissionAction(BaseModel):
    action: Optional[str] = None
    submission_ids: Optional[list[str]] = None
    data: Optional[dict] = None


class BulkSubmissionDelete(BaseModel):
    submission_ids: Optional[list[str]] = None


class ContactSubmissionPayload(ContentPayload):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    exhibition_name: Optional[str] = None
    budget: Optional[str] = None
    agreed_to_terms: bool = False


class ReplyPayload(BaseModel):
    message: Optional[str] = None


class BlogPostPayload(ContentPayload):
    title: Optional[str] = None
    tag_ids: Optional[list[str]] = None


class CityServicePayload(BaseModel):
    name: str
    description: Optional[str] = None
    is_active: bool = True


class CityPayload(ContentPayload):
    name: Optional[str] = None
    services: Optional[list[CityServicePayload]] = None


class SectionPayload(BaseModel):
    content: dict = Field(default_factory=dict)
    is_active: bool = True


class SectionItemPayload(BaseModel):
    content: dict = Field(default_factory=dict)
    is_active: bool = True
    display_order: Optional[int] = None


class ReorderPayload(BaseModel):
    ids: list[str]


class PrivacyPolicyPayload(ContentPayload):
    title: Optional[str] = None
    content: Optional[str] = None
    contact_email: Optional[str] = None


class SignUrlResponse(BaseModel):
    url: str
    bucket: str
    path: str
    method: str
