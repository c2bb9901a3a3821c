"""
Lambda handlers for the admin panel

Every handler except admin_login_handler requires a valid X-Admin-Token and
checks it against the store before doing any work. Book create/update accept
multipart/form-data so PDFs and cover images can be uploaded in one request.
"""

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

import library_backend.config as config
from library_backend.models import Book, Comment, EntityKind, Feedback, Rating, UserProfile, now_ms
from library_backend.utils import kv_store
from library_backend.utils.auth import ADMIN_TOKEN_HEADER, admin_sessions, get_header, require_admin
from library_backend.utils.library_ops import newest_first
from library_backend.utils.multipart import FormData, UploadedFile, parse_form_data
from library_backend.utils.response import api_response, error_response, serialize_book_response
from library_backend.utils.storage import (
    cover_object_key,
    delete_object,
    pdf_object_key,
    upload_object,
)
from library_backend.utils.validation import (
    get_path_param,
    parse_json_body,
    validate_string_field,
)

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Form field -> maximum length
BOOK_FIELDS = {
    "title": config.MAX_STRING_LENGTH,
    "author": config.MAX_STRING_LENGTH,
    "description": config.MAX_TEXT_LENGTH,
    "summary": config.MAX_TEXT_LENGTH,
    "category": config.MAX_STRING_LENGTH,
}
PDF_FIELDS = ("pdfFile", "pdf")
COVER_FIELD = "coverImage"


def _delete_object_quietly(key: str | None) -> None:
    """Delete a stored file; failures are logged and do not abort the request."""
    if not key:
        return
    try:
        delete_object(key)
    except ClientError as e:
        logger.error(f"S3 deletion error: {str(e)}", exc_info=True)


def _cleanup_book_records(book_id: str) -> None:
    """
    Delete the comments and ratings attached to a book.

    Errors are logged and do not abort the book deletion.
    """
    for prefix in (Comment.key_prefix(book_id), Rating.key_prefix(book_id)):
        try:
            deleted = kv_store.delete_by_prefix(prefix)
            if deleted:
                logger.info(f"Deleted {deleted} records under {prefix}")
        except ClientError as e:
            logger.error(f"Error deleting records under {prefix}: {str(e)}", exc_info=True)


def _validate_book_form(form: FormData, required: bool) -> tuple[dict[str, str], dict | None]:
    """
    Collect book text fields from a form.

    Returns:
        tuple: (values, error_response) - values holds only non-blank fields
    """
    values = {name: form.get_text(name) for name in BOOK_FIELDS}

    if required:
        missing = [name for name, value in values.items() if not value]
        if missing:
            return {}, error_response(
                400, "Bad Request", f"Missing required fields: {', '.join(missing)}"
            )

    for name, max_length in BOOK_FIELDS.items():
        value = values[name]
        if value and len(value) > max_length:
            return {}, error_response(
                400, "Bad Request", f'Field "{name}" exceeds maximum length of {max_length}'
            )

    return {name: value for name, value in values.items() if value}, None


def _validate_uploads(
    pdf: UploadedFile | None, cover: UploadedFile | None
) -> dict | None:
    """File size limits and cover MIME type, re-checked server side."""
    if pdf and pdf.size > config.MAX_PDF_SIZE_BYTES:
        return error_response(400, "Bad Request", "PDF file exceeds maximum size of 50MB")
    if cover:
        if not cover.content_type.startswith("image/"):
            return error_response(400, "Bad Request", "Cover must be an image")
        if cover.size > config.MAX_COVER_SIZE_BYTES:
            return error_response(400, "Bad Request", "Cover image exceeds maximum size of 2MB")
    return None


def _upload_cover(book_id: str, cover: UploadedFile) -> str | None:
    """
    Upload a cover image.

    Returns:
        str: Object key, or None if the upload failed (failure is tolerated)
    """
    key = cover_object_key(book_id, cover.content_type, cover.filename)
    try:
        upload_object(key, cover.content, cover.content_type)
    except ClientError as e:
        logger.error(f"Error uploading cover image, continuing without it: {str(e)}", exc_info=True)
        return None
    return key


def admin_login_handler(event, context):
    """
    Lambda handler exchanging the admin password for an admin token.
    Expects JSON body with password. Tokens are valid for 24 hours.
    """
    logger.info("admin_login_handler invoked")

    try:
        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_string_field(body, "password", max_length=config.MAX_STRING_LENGTH, required=True)
        if error:
            return error

        token = admin_sessions().login(body["password"])
        if not token:
            logger.warning("Invalid admin login attempt")
            return error_response(401, "Unauthorized", "Invalid password")

        return api_response(200, {"success": True, "token": token})

    except Exception as e:
        logger.error(f"Error in admin login: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def admin_logout_handler(event, context):
    """
    Lambda handler revoking the presented admin token.
    """
    logger.info("admin_logout_handler invoked")

    try:
        admin_sessions().revoke(get_header(event, ADMIN_TOKEN_HEADER))
        return api_response(200, {"success": True})

    except Exception as e:
        logger.error(f"Error in admin logout: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def list_users_handler(event, context):
    """
    Lambda handler listing every user profile.
    """
    logger.info("list_users_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        users = kv_store.scan(UserProfile)
        return api_response(200, {"users": [user.to_dict() for user in users]})

    except Exception as e:
        logger.error(f"Error getting users: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def admin_list_books_handler(event, context):
    """
    Lambda handler listing every book, most recent first.
    """
    logger.info("admin_list_books_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        books = newest_first(kv_store.scan(Book))
        return api_response(200, {"books": [serialize_book_response(book) for book in books]})

    except Exception as e:
        logger.error(f"Error listing books: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def admin_get_book_handler(event, context):
    """
    Lambda handler returning one book.
    Expects book ID in path parameter 'id'.
    """
    logger.info("admin_get_book_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        book = kv_store.load(Book, Book.kind.key(book_id))
        if not book:
            return error_response(404, "Not Found", f'Book "{book_id}" not found')

        return api_response(200, {"book": serialize_book_response(book)})

    except Exception as e:
        logger.error(f"Error getting book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def create_book_handler(event, context):
    """
    Lambda handler to add a book.
    Expects multipart/form-data with:
    - title, author, description, summary, category (required)
    - pdfFile (or pdf): optional PDF, at most 50MB
    - coverImage: optional image, at most 2MB

    A failed PDF upload aborts the request; a failed cover upload does not,
    and the book is created without a cover.
    """
    logger.info("create_book_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        form, error = parse_form_data(event)
        if error:
            return error

        values, error = _validate_book_form(form, required=True)
        if error:
            return error

        pdf = form.get_file(*PDF_FIELDS)
        cover = form.get_file(COVER_FIELD)
        error = _validate_uploads(pdf, cover)
        if error:
            return error

        created_at = now_ms()
        book_id = f"book_{created_at}"
        logger.info(f"Creating book {book_id}: {values['title']}")

        pdf_key = None
        if pdf:
            pdf_key = pdf_object_key(book_id)
            try:
                upload_object(pdf_key, pdf.content, "application/pdf")
            except ClientError as e:
                logger.error(f"Error uploading PDF: {str(e)}", exc_info=True)
                return error_response(500, "Upload Failed", f"Failed to upload PDF: {str(e)}")

        cover_key = _upload_cover(book_id, cover) if cover else None

        book = Book(
            id=book_id,
            title=values["title"],
            author=values["author"],
            description=values["description"],
            summary=values["summary"],
            category=values["category"],
            created_at=created_at,
            pdf_key=pdf_key,
            cover_image_key=cover_key,
        )
        kv_store.save(book)
        logger.info(f"Successfully created book: {book_id}")

        return api_response(200, {"success": True, "book": serialize_book_response(book)})

    except Exception as e:
        logger.error(f"Error adding book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def update_book_handler(event, context):
    """
    Lambda handler to update a book.
    Expects book ID in path parameter 'id' and multipart/form-data with any of
    the create fields. Blank fields keep their current value. Uploaded files
    replace the stored ones, with the same failure policy as create.
    """
    logger.info("update_book_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        form, error = parse_form_data(event)
        if error:
            return error

        values, error = _validate_book_form(form, required=False)
        if error:
            return error

        pdf = form.get_file(*PDF_FIELDS)
        cover = form.get_file(COVER_FIELD)
        error = _validate_uploads(pdf, cover)
        if error:
            return error

        book = kv_store.load(Book, Book.kind.key(book_id))
        if not book:
            return error_response(404, "Not Found", f'Book "{book_id}" not found')

        logger.info(f"Updating book {book_id} with fields: {list(values.keys())}")

        if pdf:
            pdf_key = pdf_object_key(book_id)
            try:
                upload_object(pdf_key, pdf.content, "application/pdf")
            except ClientError as e:
                logger.error(f"Error updating PDF: {str(e)}", exc_info=True)
                return error_response(500, "Upload Failed", "Failed to update PDF file")
            book.pdf_key = pdf_key

        if cover:
            cover_key = _upload_cover(book_id, cover)
            if cover_key:
                if book.cover_image_key and book.cover_image_key != cover_key:
                    _delete_object_quietly(book.cover_image_key)
                book.cover_image_key = cover_key

        book.title = values.get("title", book.title)
        book.author = values.get("author", book.author)
        book.description = values.get("description", book.description)
        book.summary = values.get("summary", book.summary)
        book.category = values.get("category", book.category)
        book.updated_at = now_ms()

        kv_store.save(book)
        logger.info(f"Successfully updated book: {book_id}")

        return api_response(200, {"success": True, "book": serialize_book_response(book)})

    except Exception as e:
        logger.error(f"Error updating book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def delete_book_handler(event, context):
    """
    Lambda handler to delete a book.
    Expects book ID in path parameter 'id'.

    Deletes:
    1. Stored PDF and cover image (failures logged, not fatal)
    2. The book's comments and ratings
    3. The book record
    """
    logger.info("delete_book_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        book_id, error = get_path_param(event, "id")
        if error:
            return error

        book = kv_store.load(Book, Book.kind.key(book_id))
        if not book:
            return error_response(404, "Not Found", f'Book with id "{book_id}" not found')

        logger.info(f"Deleting book: {book_id}")

        _delete_object_quietly(book.pdf_key)
        _delete_object_quietly(book.cover_image_key)
        _cleanup_book_records(book_id)

        kv_store.delete(book.key)
        logger.info(f"Successfully deleted book record: {book_id}")

        return api_response(200, {"success": True, "bookId": book_id})

    except Exception as e:
        logger.error(f"Error deleting book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def list_all_comments_handler(event, context):
    """
    Lambda handler listing comments on all books, newest first.
    """
    logger.info("list_all_comments_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        comments = newest_first(kv_store.scan(Comment))
        return api_response(200, {"comments": [c.to_dict() for c in comments]})

    except Exception as e:
        logger.error(f"Error getting all comments: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def _delete_owned_record(event: dict, kind: EntityKind, label: str) -> dict:
    """Delete the record whose full key is the 'id' path parameter, if ``kind`` owns it."""
    record_id, error = get_path_param(event, "id")
    if error:
        return error

    # The id is a raw store key; refuse anything outside this record kind
    if not kind.owns(record_id):
        logger.warning(f"Refusing to delete {record_id} as {label}")
        return error_response(400, "Bad Request", f"Invalid {label} id")

    if kv_store.get(record_id) is None:
        return error_response(404, "Not Found", f'{label.capitalize()} "{record_id}" not found')

    kv_store.delete(record_id)
    logger.info(f"Deleted {label}: {record_id}")
    return api_response(200, {"success": True})


def delete_comment_handler(event, context):
    """
    Lambda handler deleting a comment.
    Expects the full comment key (comment:<bookId>:<timestamp>) in path parameter 'id'.
    """
    logger.info("delete_comment_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        return _delete_owned_record(event, EntityKind.COMMENT, "comment")

    except Exception as e:
        logger.error(f"Error deleting comment: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def list_feedback_handler(event, context):
    """
    Lambda handler listing contact form submissions, newest first.
    """
    logger.info("list_feedback_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        feedback = newest_first(kv_store.scan(Feedback))
        return api_response(200, {"feedback": [f.to_dict() for f in feedback]})

    except Exception as e:
        logger.error(f"Error getting feedback: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def delete_feedback_handler(event, context):
    """
    Lambda handler deleting a feedback entry.
    Expects the full feedback key (feedback:<timestamp>) in path parameter 'id'.
    """
    logger.info("delete_feedback_handler invoked")

    try:
        error = require_admin(event)
        if error:
            return error

        return _delete_owned_record(event, EntityKind.FEEDBACK, "feedback")

    except Exception as e:
        logger.error(f"Error deleting feedback: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
