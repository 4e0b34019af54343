"""
NoteGist Backend — Input Validator
====================================

What:  Turns the raw JSON body of POST /api/summarize into a SummarizeRequest.
Why:   Every failure mode (no body, not an object, missing/non-string/empty/
       over-long text) must become the same 400 validation_error, never a
       framework-specific 422 and never silently clipped text.
Who:   Called by the summarize route after the bearer token has been verified.
"""

import json
import logging
from typing import Any

import pydantic

from app.exceptions import ValidationError
from app.schemas.summary import MAX_TEXT_LENGTH, SummarizeRequest

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = f"Invalid body. Provide non-empty 'text' ≤ {MAX_TEXT_LENGTH:,} chars."


def parse_json_body(raw: bytes) -> Any:
    """Decodes the request body, mapping malformed JSON to ValidationError."""
    if not raw:
        raise ValidationError(message=INVALID_BODY_MESSAGE, field="text", detail="Request body is empty")
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(
            message=INVALID_BODY_MESSAGE,
            detail="Request body is not valid JSON",
            context={"error": str(e)},
        ) from e


def validate_summarize_payload(payload: Any) -> SummarizeRequest:
    """
    Validate a decoded JSON payload.

    Returns:
        SummarizeRequest holding the untouched text.

    Raises:
        ValidationError: payload is not an object, or `text` breaks a rule.
            The detail names the first violated rule, e.g. the 20,000 limit.
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            message=INVALID_BODY_MESSAGE,
            detail="Request body must be a JSON object",
        )

    try:
        return SummarizeRequest.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        if first["type"] == "missing":
            detail = "Field 'text' is required"
        elif first["type"] == "string_type":
            detail = "Field 'text' must be a string"
        else:
            # Custom length rule; strip pydantic's "Value error, " prefix
            detail = first["msg"].removeprefix("Value error, ")
        logger.debug("Rejected summarize payload: %s", detail)
        raise ValidationError(
            message=INVALID_BODY_MESSAGE,
            field="text",
            detail=detail,
        ) from e
