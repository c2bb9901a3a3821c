"""
Response building utilities for Library API

Provides functions to create standardized API Gateway responses.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from library_backend.models import Book

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Admin-Token,X-Access-Token",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Expose-Headers": "Content-Length",
    "Access-Control-Max-Age": "600",
}


def api_response(status_code: int, body: Any) -> dict:
    """
    Helper to format API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)

    Returns:
        dict: API Gateway response with headers
    """
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": {"Content-Type": "application/json", **CORS_HEADERS},
    }


def preflight_response() -> dict:
    """Empty 204 answer to a CORS preflight request."""
    return {"statusCode": 204, "body": "", "headers": dict(CORS_HEADERS)}


def error_response(status_code: int, error: str, message: str) -> dict:
    """
    Helper to create error response.

    Args:
        status_code: HTTP status code
        error: Error type/category
        message: Error message

    Returns:
        dict: API Gateway error response
    """
    return api_response(status_code, {"error": error, "message": message})


def unauthorized_response() -> dict:
    """Uniform 401, identical for missing, expired and revoked credentials."""
    return error_response(401, "Unauthorized", "Unauthorized")


def convert_decimal(value: Any) -> Any:
    """
    Convert Decimal types (from DynamoDB) to int or float for JSON serialization.

    Args:
        value: Value that might be a Decimal

    Returns:
        Converted value (int if whole number, float otherwise, or the original value)
    """
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    return value


def serialize_book_response(book: "Book") -> dict:
    """
    Convert a Book record to API response format.

    Stored object keys are replaced by freshly signed download URLs.

    Args:
        book: Book record

    Returns:
        dict: Book object for API response
    """
    from library_backend.utils.storage import presigned_url

    data: dict[str, Any] = {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "description": book.description,
        "summary": book.summary,
        "category": book.category,
        "pdfUrl": presigned_url(book.pdf_key) if book.pdf_key else None,
        "coverImageUrl": presigned_url(book.cover_image_key) if book.cover_image_key else None,
        "createdAt": book.created_at,
    }

    if book.updated_at is not None:
        data["updatedAt"] = book.updated_at

    return data
