"""
Request validation utilities for Library API

Provides functions to validate and extract data from API Gateway events.
"""

from __future__ import annotations

import base64
import json
import logging
from urllib.parse import unquote

from library_backend.config import MAX_RATING, MIN_RATING
from library_backend.utils.response import error_response

logger = logging.getLogger()


def get_path_param(event: dict, param: str) -> tuple[str | None, dict | None]:
    """
    Extract and URL-decode a path parameter from API Gateway event.

    Args:
        event: API Gateway event
        param: Parameter name to extract

    Returns:
        tuple: (decoded_value, error_response) - If successful, error_response is None
    """
    path_params = event.get("pathParameters") or {}
    if not path_params.get(param):
        logger.warning(f"Missing {param} in path parameters")
        return None, error_response(
            400, "Bad Request", f"{param} is required in path"
        )
    return unquote(path_params[param]), None


def get_raw_body(event: dict) -> bytes:
    """Request body as bytes, decoding base64 bodies."""
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8") if isinstance(body, str) else body


def parse_json_body(event: dict) -> tuple[dict, dict | None]:
    """
    Parse JSON body from API Gateway event.

    Args:
        event: API Gateway event

    Returns:
        tuple: (parsed_body, error_response) - If successful, error_response is None
               If error, parsed_body is empty dict (caller should check error first)
    """
    try:
        body = json.loads(get_raw_body(event) or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        logger.warning("Invalid JSON in request body")
        return {}, error_response(400, "Bad Request", "Invalid JSON in request body")

    if not isinstance(body, dict):
        return {}, error_response(400, "Bad Request", "Request body must be a JSON object")
    return body, None


def validate_string_field(
    body: dict, field: str, max_length: int = 500, required: bool = False
) -> dict | None:
    """
    Validate a string field in request body.

    Args:
        body: Request body dictionary
        field: Field name to validate
        max_length: Maximum allowed length
        required: Whether the field is required

    Returns:
        dict: Error response if validation fails, None if valid
    """
    if body.get(field) is None:
        if required:
            return error_response(400, "Bad Request", f'Field "{field}" is required')
        return None

    value = body[field]
    if not isinstance(value, str):
        return error_response(400, "Bad Request", f'Field "{field}" must be a string')

    if len(value) > max_length:
        return error_response(
            400,
            "Bad Request",
            f'Field "{field}" exceeds maximum length of {max_length}',
        )

    if required and not value.strip():
        return error_response(400, "Bad Request", f'Field "{field}" cannot be empty')

    return None


def validate_rating(body: dict, field: str = "rating") -> dict | None:
    """
    Validate a rating (integer between MIN_RATING and MAX_RATING).

    Args:
        body: Request body dictionary
        field: Field name to validate (default: "rating")

    Returns:
        dict: Error response if validation fails, None if valid
    """
    rating = body.get(field)

    # bool is an int subclass; true/false are not ratings
    if isinstance(rating, bool) or not isinstance(rating, int):
        return error_response(400, "Bad Request", f"{field} must be an integer")

    if rating < MIN_RATING or rating > MAX_RATING:
        return error_response(
            400,
            "Bad Request",
            f"{field} must be between {MIN_RATING} and {MAX_RATING}",
        )

    return None
