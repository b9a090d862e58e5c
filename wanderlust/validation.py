"""
Wanderlust Backend - Submission Validation
===========================================

What:  Dependencies that pull `listing[...]` / `review[...]` fields out of a
       request and validate them against the form schemas.
How:   Form-encoded and multipart bodies are flattened by key prefix;
       a JSON body of the shape {"listing": {...}} is accepted as well.
       Any problem raises ValidationError (400) before a handler touches
       the database.
Who:   Listing create/update and review create routes.
"""

import json
import re
from typing import Any, Dict, Mapping, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from wanderlust.exceptions import ValidationError
from wanderlust.schemas.forms import ListingForm, ReviewForm, validate_payload

_NESTED_KEY = re.compile(r"^(?P<prefix>[^\[\]]+)\[(?P<field>[^\[\]]+)\]$")


def nested_fields(form: Mapping[str, Any], prefix: str) -> Dict[str, Any]:
    """
    Collect `prefix[field]` entries into a plain dict.

    Example:
        {"listing[title]": "Cabin", "listing[image]": <UploadFile>, "x": 1}
        with prefix "listing" → {"title": "Cabin"}
    """
    fields: Dict[str, Any] = {}
    for key, value in form.items():
        match = _NESTED_KEY.match(key)
        if not match or match.group("prefix") != prefix:
            continue
        if isinstance(value, UploadFile):
            continue
        fields[match.group("field")] = value
    return fields


async def read_submission(request: Request, prefix: str) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Request body is not valid JSON")
        section = body.get(prefix) if isinstance(body, dict) else None
        if not isinstance(section, dict):
            raise ValidationError(f"{prefix}: Field required")
        return section

    form = await request.form()
    return nested_fields(form, prefix)


async def validated_listing(request: Request) -> ListingForm:
    data = await read_submission(request, "listing")
    return validate_payload(ListingForm, data, prefix="listing")


async def validated_review(request: Request) -> ReviewForm:
    data = await read_submission(request, "review")
    return validate_payload(ReviewForm, data, prefix="review")


async def listing_image(request: Request) -> Optional[UploadFile]:
    """The `listing[image]` file part, or None when no file was chosen."""
    if not request.headers.get("content-type", "").startswith("multipart/form-data"):
        return None
    form = await request.form()
    upload = form.get("listing[image]")
    if isinstance(upload, UploadFile) and upload.filename:
        return upload
    return None
