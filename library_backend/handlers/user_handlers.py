"""
Lambda handlers for per-user book lists (favorites, recently viewed)

Both lists live inside the ``user:<id>`` profile record and are updated with a
plain read-modify-write; concurrent updates to one profile are last write wins.
"""

from __future__ import annotations

import logging

import library_backend.config as config
from library_backend.models import UserProfile
from library_backend.utils import kv_store
from library_backend.utils.auth import require_user
from library_backend.utils.library_ops import add_favorite, push_recent, remove_favorite
from library_backend.utils.response import api_response, error_response
from library_backend.utils.validation import (
    get_path_param,
    parse_json_body,
    validate_string_field,
)

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _load_profile(user_id: str) -> tuple[UserProfile | None, dict | None]:
    profile = kv_store.load(UserProfile, UserProfile.kind.key(user_id))
    if not profile:
        logger.warning(f"Profile not found for user: {user_id}")
        return None, error_response(404, "Not Found", "User profile not found")
    return profile, None


def _book_id_from_body(event: dict) -> tuple[str | None, dict | None]:
    body, error = parse_json_body(event)
    if error:
        return None, error
    error = validate_string_field(body, "bookId", max_length=config.MAX_STRING_LENGTH, required=True)
    if error:
        return None, error
    return body["bookId"].strip(), None


def add_favorite_handler(event, context):
    """
    Lambda handler to add a book to the user's favorites.
    Expects JSON body with bookId. Adding a book twice is a no-op.
    """
    logger.info("add_favorite_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = _book_id_from_body(event)
        if error:
            return error

        profile, error = _load_profile(user_id)
        if error:
            return error

        profile.favorites, changed = add_favorite(profile.favorites, book_id)
        if changed:
            kv_store.save(profile)
            logger.info(f"Added {book_id} to favorites of {user_id}")

        return api_response(200, {"success": True, "favorites": profile.favorites})

    except Exception as e:
        logger.error(f"Error adding to favorites: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def remove_favorite_handler(event, context):
    """
    Lambda handler to remove a book from the user's favorites.
    Expects book ID in path parameter 'bookId'. Removing an absent book is a no-op.
    """
    logger.info("remove_favorite_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = get_path_param(event, "bookId")
        if error:
            return error

        profile, error = _load_profile(user_id)
        if error:
            return error

        profile.favorites, changed = remove_favorite(profile.favorites, book_id)
        if changed:
            kv_store.save(profile)
            logger.info(f"Removed {book_id} from favorites of {user_id}")

        return api_response(200, {"success": True, "favorites": profile.favorites})

    except Exception as e:
        logger.error(f"Error removing from favorites: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def add_recent_handler(event, context):
    """
    Lambda handler to record a viewed book.
    Expects JSON body with bookId; the book moves to the front of the list,
    which keeps at most RECENT_LIMIT entries.
    """
    logger.info("add_recent_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = _book_id_from_body(event)
        if error:
            return error

        profile, error = _load_profile(user_id)
        if error:
            return error

        profile.recent = push_recent(profile.recent, book_id, config.RECENT_LIMIT)
        kv_store.save(profile)

        return api_response(200, {"success": True, "recent": profile.recent})

    except Exception as e:
        logger.error(f"Error adding to recent: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
