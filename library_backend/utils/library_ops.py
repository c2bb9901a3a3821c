"""
Pure list and aggregate operations used by the handlers

None of these touch the store; handlers load records, apply these, and write
the result back.
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from library_backend.models import Rating

T = TypeVar("T")


def add_favorite(favorites: list[str], book_id: str) -> tuple[list[str], bool]:
    """
    Add a book id to a favorites list.

    Returns:
        tuple: (new_list, changed) - adding an id already present is a no-op
    """
    if book_id in favorites:
        return list(favorites), False
    return [*favorites, book_id], True


def remove_favorite(favorites: list[str], book_id: str) -> tuple[list[str], bool]:
    """
    Remove a book id from a favorites list.

    Returns:
        tuple: (new_list, changed) - removing an absent id is a no-op
    """
    remaining = [fid for fid in favorites if fid != book_id]
    return remaining, len(remaining) != len(favorites)


def push_recent(recent: list[str], book_id: str, limit: int) -> list[str]:
    """Move ``book_id`` to the front of ``recent``, de-duplicated and capped at ``limit``."""
    return [book_id, *(rid for rid in recent if rid != book_id)][:limit]


def aggregate_ratings(ratings: Iterable[Rating]) -> list[dict[str, Any]]:
    """
    Average rating per book.

    Books without ratings produce no entry. Output follows first-seen order
    of each book id.

    Returns:
        list: [{"bookId", "averageRating", "totalRatings"}, ...]
    """
    totals: dict[str, list[float]] = {}
    for rating in ratings:
        total = totals.setdefault(rating.book_id, [0, 0])
        total[0] += rating.rating
        total[1] += 1

    return [
        {"bookId": book_id, "averageRating": total / count, "totalRatings": count}
        for book_id, (total, count) in totals.items()
    ]


def newest_first(records: Iterable[T]) -> list[T]:
    """Sort records by ``created_at`` descending."""
    return sorted(records, key=lambda r: r.created_at, reverse=True)  # type: ignore[attr-defined]
