"""
FastAPI service for the exhibition-stand site's content.

Routes, storage and database abstractions for the admin panel and the
public pages, plus the worker that sends enquiry notification emails.
"""
