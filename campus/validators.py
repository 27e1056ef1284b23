"""
Form field checks shared by the views.

Each function returns a list of human-readable error strings (empty when the
input is fine) so views can flash them one by one with django.contrib.messages.
"""

import os
import re
from datetime import date

from django.conf import settings
from PIL import Image

from .models import SIGNUP_ROLES

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_signup(name, email, password, role):
    errors = []

    name = (name or '').strip()
    if not name:
        errors.append("Name is required")
    elif len(name) < 2:
        errors.append("Name must be at least 2 characters long")

    email = (email or '').strip()
    if not email:
        errors.append("Email is required")
    elif not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")

    if not password:
        errors.append("Password is required")
    elif len(password) < 6:
        errors.append("Password must be at least 6 characters long")
    elif not re.search(r'\d', password):
        errors.append("Password must contain at least one number")
    elif not re.search(r'[a-zA-Z]', password):
        errors.append("Password must contain at least one letter")

    if not role:
        errors.append("Please select a role")
    elif role not in SIGNUP_ROLES:
        errors.append("Please select a valid role")

    return errors


def validate_required(data, *fields):
    """Return an error for each field of ``data`` that is blank."""
    errors = []
    for field in fields:
        if not (data.get(field) or '').strip():
            errors.append(f"{field.replace('_', ' ').capitalize()} is required")
    return errors


def _is_readable_image(upload):
    upload.seek(0)
    try:
        with Image.open(upload) as image:
            image.verify()
    except (OSError, SyntaxError, ValueError):
        return False
    finally:
        upload.seek(0)
    return True


def validate_image_upload(upload):
    if upload is None:
        return []
    errors = []
    content_type = getattr(upload, 'content_type', '') or ''
    if not content_type.startswith('image/') or not _is_readable_image(upload):
        errors.append("Only image files are allowed")
    if upload.size > settings.MAX_IMAGE_UPLOAD_SIZE:
        errors.append("Image size must be less than 5MB")
    return errors


def validate_pdf_upload(upload):
    if upload is None:
        return ["Please select a PDF file"]
    errors = []
    content_type = getattr(upload, 'content_type', '') or ''
    ext = os.path.splitext(upload.name)[1].lower()
    if ext != '.pdf' and content_type != 'application/pdf':
        errors.append("Portfolio must be a PDF file")
    if upload.size > settings.MAX_PORTFOLIO_UPLOAD_SIZE:
        errors.append("File size must be less than 10MB")
    return errors


def parse_iso_date(value):
    """'2026-05-01' -> date, blank or malformed -> None."""
    value = (value or '').strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
