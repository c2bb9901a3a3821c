"""
Lambda handlers for Library API

This module serves as the entry point for all Lambda functions.
It re-exports handlers from their respective modules for Lambda function
configuration, and provides dispatch_handler for a single proxy-integrated
function serving every route under API_BASE_PATH.

Architecture:
- API Gateway -> Lambda -> DynamoDB key-value table (all records)
- API Gateway -> Lambda -> Cognito (end-user accounts)
- API Gateway -> Lambda -> S3 (PDFs and covers, presigned download URLs)

Auth:
- X-Access-Token: Cognito access token of an end user
- X-Admin-Token: admin session token from POST /admin/login
"""

from __future__ import annotations

import hmac
import logging
import re
from typing import Callable

import library_backend.config as config
from library_backend.handlers.admin_handlers import (
    admin_get_book_handler,
    admin_list_books_handler,
    admin_login_handler,
    admin_logout_handler,
    create_book_handler,
    delete_book_handler,
    delete_comment_handler,
    delete_feedback_handler,
    list_all_comments_handler,
    list_feedback_handler,
    list_users_handler,
    update_book_handler,
)
from library_backend.handlers.auth_handlers import me_handler, signin_handler, signup_handler
from library_backend.handlers.book_handlers import (
    add_comment_handler,
    get_book_handler,
    list_books_handler,
    list_comments_handler,
    my_rating_handler,
    rate_book_handler,
    ratings_summary_handler,
)
from library_backend.handlers.public_handlers import health_handler, submit_feedback_handler
from library_backend.handlers.user_handlers import (
    add_favorite_handler,
    add_recent_handler,
    remove_favorite_handler,
)
from library_backend.utils.auth import get_header
from library_backend.utils.response import error_response, preflight_response

logger = logging.getLogger()
logger.setLevel(logging.INFO)

Handler = Callable[[dict, object], dict]

# Order matters: literal segments must precede {param} captures at the same depth
ROUTES: list[tuple[str, str, Handler]] = [
    ("GET", "/health", health_handler),
    ("POST", "/auth/signup", signup_handler),
    ("POST", "/auth/signin", signin_handler),
    ("GET", "/auth/me", me_handler),
    ("POST", "/admin/login", admin_login_handler),
    ("POST", "/admin/logout", admin_logout_handler),
    ("GET", "/admin/users", list_users_handler),
    ("GET", "/admin/books", admin_list_books_handler),
    ("POST", "/admin/books", create_book_handler),
    ("GET", "/admin/books/{id}", admin_get_book_handler),
    ("PUT", "/admin/books/{id}", update_book_handler),
    ("DELETE", "/admin/books/{id}", delete_book_handler),
    ("GET", "/admin/comments", list_all_comments_handler),
    ("DELETE", "/admin/comments/{id}", delete_comment_handler),
    ("GET", "/admin/feedback", list_feedback_handler),
    ("DELETE", "/admin/feedback/{id}", delete_feedback_handler),
    ("GET", "/books", list_books_handler),
    ("GET", "/books/ratings/all", ratings_summary_handler),
    ("GET", "/books/{id}", get_book_handler),
    ("GET", "/books/{id}/comments", list_comments_handler),
    ("POST", "/books/{id}/comments", add_comment_handler),
    ("POST", "/books/{id}/rate", rate_book_handler),
    ("GET", "/books/{id}/my-rating", my_rating_handler),
    ("POST", "/user/favorites", add_favorite_handler),
    ("DELETE", "/user/favorites/{bookId}", remove_favorite_handler),
    ("POST", "/user/recent", add_recent_handler),
    ("POST", "/feedback", submit_feedback_handler),
]


def _compile(template: str) -> re.Pattern[str]:
    pattern = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", template)
    return re.compile(f"^{pattern}$")


COMPILED_ROUTES = [(method, _compile(template), fn) for method, template, fn in ROUTES]


def _request_line(event: dict) -> tuple[str, str]:
    """(method, path) for REST API (v1) and HTTP API (v2) proxy events."""
    request_context = event.get("requestContext") or {}
    method = event.get("httpMethod") or request_context.get("http", {}).get("method", "")
    path = event.get("rawPath") or event.get("path") or "/"

    # HTTP API rawPath carries a named stage; $default has none
    stage = request_context.get("stage")
    if event.get("rawPath") and stage and stage != "$default":
        prefix = f"/{stage}"
        if path == prefix or path.startswith(prefix + "/"):
            path = path[len(prefix):] or "/"

    base = config.API_BASE_PATH.rstrip("/")
    if base and (path == base or path.startswith(base + "/")):
        path = path[len(base):] or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return method.upper(), path


def _has_anon_key(event: dict) -> bool:
    expected = f"Bearer {config.API_ANON_KEY}"
    presented = get_header(event, "Authorization") or ""
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def dispatch_handler(event, context):
    """
    Lambda handler routing a proxy event to the handler for its method and path.
    """
    method, path = _request_line(event)

    if method == "OPTIONS":
        return preflight_response()

    if config.API_ANON_KEY and not _has_anon_key(event):
        logger.warning(f"Missing or wrong API key for {method} {path}")
        return error_response(401, "Unauthorized", "Unauthorized")

    for route_method, pattern, fn in COMPILED_ROUTES:
        if route_method != method:
            continue
        match = pattern.match(path)
        if match:
            path_params = {**(event.get("pathParameters") or {}), **match.groupdict()}
            return fn({**event, "pathParameters": path_params}, context)

    logger.warning(f"No route for {method} {path}")
    return error_response(404, "Not Found", f"No route for {method} {path}")


# Make handlers available at module level for Lambda
__all__ = [
    "dispatch_handler",
    "health_handler",
    "signup_handler",
    "signin_handler",
    "me_handler",
    "admin_login_handler",
    "admin_logout_handler",
    "list_users_handler",
    "admin_list_books_handler",
    "admin_get_book_handler",
    "create_book_handler",
    "update_book_handler",
    "delete_book_handler",
    "list_all_comments_handler",
    "delete_comment_handler",
    "list_feedback_handler",
    "delete_feedback_handler",
    "list_books_handler",
    "get_book_handler",
    "list_comments_handler",
    "add_comment_handler",
    "rate_book_handler",
    "my_rating_handler",
    "ratings_summary_handler",
    "add_favorite_handler",
    "remove_favorite_handler",
    "add_recent_handler",
    "submit_feedback_handler",
]
