"""
Lambda handlers for the public catalog (books, comments, ratings)

Listing endpoints are full prefix scans of the key-value table sorted in
memory; there is no pagination.
"""

from __future__ import annotations

import logging

import library_backend.config as config
from library_backend.models import Book, Comment, Rating, UserProfile, now_ms
from library_backend.utils import kv_store
from library_backend.utils.auth import require_user
from library_backend.utils.library_ops import aggregate_ratings, newest_first
from library_backend.utils.response import api_response, error_response, serialize_book_response
from library_backend.utils.validation import (
    get_path_param,
    parse_json_body,
    validate_rating,
    validate_string_field,
)

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _book_not_found(book_id: str) -> dict:
    logger.warning(f"Book not found: {book_id}")
    return error_response(404, "Not Found", f'Book "{book_id}" not found')


def list_books_handler(event, context):
    """
    Lambda handler to list all books, most recent first.
    """
    logger.info("list_books_handler invoked")

    try:
        books = newest_first(kv_store.scan(Book))
        logger.info(f"Retrieved {len(books)} books")
        return api_response(200, {"books": [serialize_book_response(book) for book in books]})

    except Exception as e:
        logger.error(f"Error listing books: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def get_book_handler(event, context):
    """
    Lambda handler returning one book with signed download URLs.
    Expects book ID in path parameter 'id'.
    """
    logger.info("get_book_handler invoked")

    try:
        book_id, error = get_path_param(event, "id")
        if error:
            return error

        book = kv_store.load(Book, Book.kind.key(book_id))
        if not book:
            return _book_not_found(book_id)

        return api_response(200, {"book": serialize_book_response(book)})

    except Exception as e:
        logger.error(f"Error getting book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def list_comments_handler(event, context):
    """
    Lambda handler listing the comments of one book, newest first.
    Expects book ID in path parameter 'id'.
    """
    logger.info("list_comments_handler invoked")

    try:
        book_id, error = get_path_param(event, "id")
        if error:
            return error

        comments = newest_first(kv_store.scan(Comment, Comment.key_prefix(book_id)))
        return api_response(200, {"comments": [c.to_dict() for c in comments]})

    except Exception as e:
        logger.error(f"Error getting comments: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def add_comment_handler(event, context):
    """
    Lambda handler to comment on a book.
    Expects book ID in path parameter 'id' and JSON body with text.
    The comment is stored under comment:<bookId>:<timestamp>.
    """
    logger.info("add_comment_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_string_field(body, "text", max_length=config.MAX_TEXT_LENGTH, required=True)
        if error:
            return error

        if not kv_store.get(Book.kind.key(book_id)):
            return _book_not_found(book_id)

        profile = kv_store.load(UserProfile, UserProfile.kind.key(user_id))
        if not profile:
            return error_response(404, "Not Found", "User profile not found")

        created_at = now_ms()
        comment = Comment(
            id=Comment.kind.key(book_id, str(created_at)),
            book_id=book_id,
            user_id=user_id,
            user_name=profile.display_name,
            user_login=profile.login,
            text=body["text"].strip(),
            created_at=created_at,
        )
        kv_store.save(comment)
        logger.info(f"Stored comment {comment.id}")

        return api_response(200, {"success": True, "comment": comment.to_dict()})

    except Exception as e:
        logger.error(f"Error adding comment: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def rate_book_handler(event, context):
    """
    Lambda handler to rate a book from 1 to 5.
    Expects book ID in path parameter 'id' and JSON body with rating.
    One rating per user and book; rating again overwrites the previous one.
    """
    logger.info("rate_book_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_rating(body)
        if error:
            return error

        if not kv_store.get(Book.kind.key(book_id)):
            return _book_not_found(book_id)

        rating = Rating(book_id=book_id, user_id=user_id, rating=body["rating"], created_at=now_ms())
        kv_store.save(rating)
        logger.info(f"User {user_id} rated {book_id}: {rating.rating}")

        return api_response(200, {"success": True, "rating": rating.rating})

    except Exception as e:
        logger.error(f"Error rating book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def my_rating_handler(event, context):
    """
    Lambda handler returning the caller's rating of a book, or null.
    Expects book ID in path parameter 'id'.
    """
    logger.info("my_rating_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        rating = kv_store.load(Rating, Rating.kind.key(book_id, user_id))
        return api_response(200, {"rating": rating.rating if rating else None})

    except Exception as e:
        logger.error(f"Error getting user rating: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def ratings_summary_handler(event, context):
    """
    Lambda handler returning average rating and rating count per book.
    Recomputed from every rating record on each call.
    """
    logger.info("ratings_summary_handler invoked")

    try:
        ratings = aggregate_ratings(kv_store.scan(Rating))
        return api_response(200, {"ratings": ratings})

    except Exception as e:
        logger.error(f"Error getting all ratings: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
