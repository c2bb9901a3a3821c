"""
Record types stored in the key-value table

Every record lives in one flat namespace and is told apart by its key prefix:

    user:<authId>                   UserProfile
    book:<bookId>                   Book
    comment:<bookId>:<timestamp>    Comment
    feedback:<timestamp>            Feedback
    rating:<bookId>:<userId>        Rating
    admin_token:<token>             AdminToken

Each record type knows its own key and converts to and from the JSON-like dict
that is persisted. ``from_dict`` is the validation point at the storage
boundary and raises ``RecordValidationError`` for malformed payloads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class EntityKind(str, Enum):
    """Entity kinds, valued by their key prefix."""

    USER = "user"
    BOOK = "book"
    COMMENT = "comment"
    FEEDBACK = "feedback"
    RATING = "rating"
    ADMIN_TOKEN = "admin_token"

    @property
    def prefix(self) -> str:
        return f"{self.value}:"

    def key(self, *parts: str) -> str:
        return self.value + "".join(f":{part}" for part in parts)

    def owns(self, key: str) -> bool:
        return key.startswith(self.prefix)


class RecordValidationError(ValueError):
    """Raised when a stored payload does not match its record type."""


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _require_str(data: dict, name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value:
        raise RecordValidationError(f'Field "{name}" must be a non-empty string')
    return value


def _optional_str(data: dict, name: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise RecordValidationError(f'Field "{name}" must be a string')
    return value


def _require_int(data: dict, name: str) -> int:
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordValidationError(f'Field "{name}" must be an integer')
    return value


def _optional_int(data: dict, name: str) -> int | None:
    if data.get(name) is None:
        return None
    return _require_int(data, name)


def _require_number(data: dict, name: str) -> int | float:
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RecordValidationError(f'Field "{name}" must be a number')
    return value


def _str_list(data: dict, name: str) -> list[str]:
    value = data.get(name) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RecordValidationError(f'Field "{name}" must be a list of strings')
    return list(value)


@dataclass
class UserProfile:
    kind: ClassVar[EntityKind] = EntityKind.USER

    id: str
    login: str
    first_name: str
    last_name: str | None = None
    date_of_birth: str | None = None
    country: str | None = None
    city: str | None = None
    about_me: str | None = None
    favorites: list[str] = field(default_factory=list)
    recent: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.kind.key(self.id)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "login": self.login,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth,
            "country": self.country,
            "city": self.city,
            "aboutMe": self.about_me,
            "favorites": list(self.favorites),
            "recent": list(self.recent),
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            id=_require_str(data, "id"),
            login=_require_str(data, "login"),
            first_name=_require_str(data, "firstName"),
            last_name=_optional_str(data, "lastName"),
            date_of_birth=_optional_str(data, "dateOfBirth"),
            country=_optional_str(data, "country"),
            city=_optional_str(data, "city"),
            about_me=_optional_str(data, "aboutMe"),
            favorites=_str_list(data, "favorites"),
            recent=_str_list(data, "recent"),
        )


@dataclass
class Book:
    """
    Book metadata.

    Stored files are referenced by object key; signed URLs are produced at read
    time (see ``utils.response.serialize_book_response``).
    """

    kind: ClassVar[EntityKind] = EntityKind.BOOK

    id: str
    title: str
    author: str
    description: str
    summary: str
    category: str
    created_at: int
    pdf_key: str | None = None
    cover_image_key: str | None = None
    updated_at: int | None = None

    @property
    def key(self) -> str:
        return self.kind.key(self.id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "summary": self.summary,
            "category": self.category,
            "pdfKey": self.pdf_key,
            "coverImageKey": self.cover_image_key,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Book:
        return cls(
            id=_require_str(data, "id"),
            title=_require_str(data, "title"),
            author=_require_str(data, "author"),
            description=_require_str(data, "description"),
            summary=_require_str(data, "summary"),
            category=_require_str(data, "category"),
            created_at=_require_int(data, "createdAt"),
            pdf_key=_optional_str(data, "pdfKey"),
            cover_image_key=_optional_str(data, "coverImageKey"),
            updated_at=_optional_int(data, "updatedAt"),
        )


@dataclass
class Comment:
    kind: ClassVar[EntityKind] = EntityKind.COMMENT

    id: str  # full key, comment:<bookId>:<timestamp>
    book_id: str
    user_id: str
    user_name: str
    user_login: str
    text: str
    created_at: int

    @property
    def key(self) -> str:
        return self.id

    @classmethod
    def key_prefix(cls, book_id: str) -> str:
        return cls.kind.key(book_id) + ":"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bookId": self.book_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "userLogin": self.user_login,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        return cls(
            id=_require_str(data, "id"),
            book_id=_require_str(data, "bookId"),
            user_id=_require_str(data, "userId"),
            user_name=_optional_str(data, "userName") or "",
            user_login=_optional_str(data, "userLogin") or "",
            text=_require_str(data, "text"),
            created_at=_require_int(data, "createdAt"),
        )


@dataclass
class Feedback:
    kind: ClassVar[EntityKind] = EntityKind.FEEDBACK

    id: str  # full key, feedback:<timestamp>
    name: str
    email: str
    message: str
    created_at: int

    @property
    def key(self) -> str:
        return self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Feedback:
        return cls(
            id=_require_str(data, "id"),
            name=_require_str(data, "name"),
            email=_require_str(data, "email"),
            message=_require_str(data, "message"),
            created_at=_require_int(data, "createdAt"),
        )


@dataclass
class Rating:
    """
    One user's rating of one book.

    Only ``bookId`` and a numeric ``rating`` are required to read a record
    back, so older or partial records still count towards the averages. New
    ratings are always whole numbers (see ``validate_rating``).
    """

    kind: ClassVar[EntityKind] = EntityKind.RATING

    book_id: str
    user_id: str
    rating: int | float
    created_at: int | None = None

    @property
    def key(self) -> str:
        return self.kind.key(self.book_id, self.user_id)

    @classmethod
    def key_prefix(cls, book_id: str) -> str:
        return cls.kind.key(book_id) + ":"

    def to_dict(self) -> dict[str, Any]:
        return {
            "rating": self.rating,
            "bookId": self.book_id,
            "userId": self.user_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Rating:
        return cls(
            book_id=_require_str(data, "bookId"),
            user_id=_optional_str(data, "userId") or "",
            rating=_require_number(data, "rating"),
            created_at=_optional_int(data, "createdAt"),
        )


@dataclass
class AdminToken:
    kind: ClassVar[EntityKind] = EntityKind.ADMIN_TOKEN

    token: str
    valid: bool
    created_at: int
    expires_at: int

    @property
    def key(self) -> str:
        return self.kind.key(self.token)

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        # The token itself is the key and is not repeated in the payload
        return {
            "valid": self.valid,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict, token: str = "") -> AdminToken:
        return cls(
            token=token,
            valid=data.get("valid") is True,
            created_at=_require_int(data, "createdAt"),
            expires_at=_require_int(data, "expiresAt"),
        )
