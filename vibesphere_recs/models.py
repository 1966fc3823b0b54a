"""
Data Model
==========

Records exchanged between the scorer and its collaborators:

    - Book: immutable catalog record
    - UserProfile: preferences and recently explored tags
    - RatingMatrix: user -> book -> rating (1-5)

Validation happens here, at the ingestion boundary. The scorer assumes
the values it receives have already passed through these types.
"""

import copy
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .config import (
    HISTORY_TAG_LIMIT,
    MAX_BOOK_RATING,
    MAX_RATING,
    MIN_RATING,
)


class ValidationError(ValueError):
    """Raised when incoming data does not satisfy the data model."""


def is_valid_rating(value: Any) -> bool:
    """True for integers (numpy included) within [MIN_RATING, MAX_RATING]; bools excluded."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        return False
    return MIN_RATING <= value <= MAX_RATING


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _as_tuple(values: Optional[Iterable[str]], field_name: str) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise ValidationError(f"{field_name} must be a list of strings, got a string")
    return tuple(str(v) for v in values)


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (accepts camelCase and snake_case)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Book:
    """Immutable catalog record."""
    book_id: str
    title: str
    author: str = ""
    genres: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    length_hours: float = 1.0
    summary: str = ""
    cover: str = ""
    rating: float = 0.0

    def __post_init__(self):
        if not self.book_id:
            raise ValidationError("Book requires a non-empty identifier")
        if not _is_finite_number(self.length_hours) or self.length_hours <= 0:
            raise ValidationError(
                f"Book {self.book_id!r}: length_hours must be positive, got {self.length_hours!r}"
            )
        if not _is_finite_number(self.rating) or not 0 <= self.rating <= MAX_BOOK_RATING:
            raise ValidationError(
                f"Book {self.book_id!r}: rating must be within 0-{MAX_BOOK_RATING}, got {self.rating!r}"
            )
        # Frozen dataclass: coerce lists handed in by callers
        object.__setattr__(self, "genres", _as_tuple(self.genres, "genres"))
        object.__setattr__(self, "tags", _as_tuple(self.tags, "tags"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Book":
        """Build a Book from a catalog or API record."""
        if not isinstance(data, dict):
            raise ValidationError(f"Book record must be a mapping, got {type(data).__name__}")
        try:
            length = float(_pick(data, "length_hours", "lengthHours", default=1.0))
            rating = float(_pick(data, "rating", default=0.0))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Book record has a non-numeric field: {e}") from e

        return cls(
            book_id=str(_pick(data, "book_id", "id", default="")),
            title=str(_pick(data, "title", default="Untitled")),
            author=str(_pick(data, "author", default="")),
            genres=_pick(data, "genres", default=()),
            tags=_pick(data, "tags", default=()),
            length_hours=length,
            summary=str(_pick(data, "summary", "description", default="")),
            cover=str(_pick(data, "cover", default="")),
            rating=rating,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "book_id": self.book_id,
            "title": self.title,
            "author": self.author,
            "genres": list(self.genres),
            "tags": list(self.tags),
            "length_hours": self.length_hours,
            "summary": self.summary,
            "cover": self.cover,
            "rating": self.rating,
        }


@dataclass
class UserProfile:
    """
    Reader profile consumed by the scorer.

    history_tags is ordered oldest -> most recent and bounded to
    HISTORY_TAG_LIMIT entries.
    """
    user_id: str
    name: str = ""
    favorite_genres: Set[str] = field(default_factory=set)
    history_tags: List[str] = field(default_factory=list)
    time_budget_hours: Optional[float] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValidationError("UserProfile requires a non-empty identifier")
        self.favorite_genres = set(_as_tuple(self.favorite_genres, "favorite_genres"))
        self.history_tags = list(_as_tuple(self.history_tags, "history_tags"))[-HISTORY_TAG_LIMIT:]
        self.time_budget_hours = self._check_budget(self.time_budget_hours)

    @staticmethod
    def _check_budget(hours: Optional[float]) -> Optional[float]:
        if hours is None:
            return None
        if not _is_finite_number(hours) or hours <= 0:
            raise ValidationError(f"time_budget_hours must be a positive number, got {hours!r}")
        return float(hours)

    def record_book(self, book: Book) -> None:
        """Record a book's tags as the most recently explored ones."""
        for tag in book.tags:
            if tag in self.history_tags:
                self.history_tags.remove(tag)
            self.history_tags.append(tag)
        del self.history_tags[:-HISTORY_TAG_LIMIT]

    def update_preferences(
        self,
        favorite_genres: Optional[Iterable[str]] = None,
        time_budget_hours: Any = ...,
    ) -> None:
        """
        Edit preferences.

        Args:
            favorite_genres: Replacement genre set (unchanged if None)
            time_budget_hours: New budget; None clears it, omitted leaves it
        """
        if time_budget_hours is not ...:
            self.time_budget_hours = self._check_budget(time_budget_hours)
        if favorite_genres is not None:
            self.favorite_genres = set(_as_tuple(favorite_genres, "favorite_genres"))

    def snapshot(self) -> "UserProfile":
        return UserProfile(
            user_id=self.user_id,
            name=self.name,
            favorite_genres=set(self.favorite_genres),
            history_tags=list(self.history_tags),
            time_budget_hours=self.time_budget_hours,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        if not isinstance(data, dict):
            raise ValidationError(f"Profile must be a mapping, got {type(data).__name__}")
        return cls(
            user_id=str(_pick(data, "user_id", "id", default="")),
            name=str(_pick(data, "name", default="")),
            favorite_genres=_pick(data, "favorite_genres", "favoriteGenres", default=()),
            history_tags=_pick(data, "history_tags", "historyTags", default=()),
            time_budget_hours=_pick(data, "time_budget_hours", "timeBudgetHours"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "favorite_genres": sorted(self.favorite_genres),
            "history_tags": list(self.history_tags),
            "time_budget_hours": self.time_budget_hours,
        }


class RatingMatrix(Mapping):
    """
    user_id -> {book_id: rating} with validated, whole-cell writes.

    Reads return copies so the matrix can only change through set_rating
    and remove_rating.
    """

    def __init__(self):
        self._ratings: Dict[str, Dict[str, int]] = {}

    # Mapping interface -------------------------------------------------------
    def __getitem__(self, user_id: str) -> Dict[str, int]:
        return dict(self._ratings[user_id])

    def __iter__(self) -> Iterator[str]:
        return iter(self._ratings)

    def __len__(self) -> int:
        return len(self._ratings)

    def __repr__(self) -> str:
        n_cells = sum(len(row) for row in self._ratings.values())
        return f"RatingMatrix(users={len(self._ratings)}, ratings={n_cells})"

    # Writes -----------------------------------------------------------------
    def set_rating(self, user_id: str, book_id: str, rating: int) -> None:
        """Replace the (user, book) cell. Invalid ratings leave it untouched."""
        if not user_id or not book_id:
            raise ValidationError("Ratings require both a user id and a book id")
        if not is_valid_rating(rating):
            raise ValidationError(
                f"Rating for ({user_id!r}, {book_id!r}) must be an integer "
                f"{MIN_RATING}-{MAX_RATING}, got {rating!r}"
            )
        self._ratings.setdefault(user_id, {})[book_id] = int(rating)

    def remove_rating(self, user_id: str, book_id: str) -> bool:
        row = self._ratings.get(user_id)
        if not row or book_id not in row:
            return False
        del row[book_id]
        if not row:
            del self._ratings[user_id]
        return True

    # Reads ------------------------------------------------------------------
    def get_rating(self, user_id: str, book_id: str) -> Optional[int]:
        return self._ratings.get(user_id, {}).get(book_id)

    def user_ratings(self, user_id: str) -> Dict[str, int]:
        return dict(self._ratings.get(user_id, {}))

    def snapshot(self) -> "RatingMatrix":
        clone = RatingMatrix()
        clone._ratings = copy.deepcopy(self._ratings)
        return clone

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return copy.deepcopy(self._ratings)

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, Any]]) -> "RatingMatrix":
        """Ingest a mapping-of-mappings. Any invalid cell rejects the whole input."""
        if not isinstance(data, dict):
            raise ValidationError(f"Ratings must be a mapping, got {type(data).__name__}")
        matrix = cls()
        for user_id, row in data.items():
            if not isinstance(row, dict):
                raise ValidationError(f"Ratings for user {user_id!r} must be a mapping")
            for book_id, rating in row.items():
                matrix.set_rating(str(user_id), str(book_id), rating)
        return matrix
