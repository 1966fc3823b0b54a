"""
Catalog Loading
===============

Bundled sample data plus loaders for catalog, ratings, and profile files.

Files are JSON:
    catalog:  [{"id": "b1", "title": ..., "genres": [...], "tags": [...], "lengthHours": 6}, ...]
              or {"books": [...]}
    ratings:  {"u1": {"b1": 5, "b3": 4}, ...}
    profile:  {"id": "u1", "favoriteGenres": [...], "historyTags": [...], "timeBudgetHours": 6}
"""

import json
from pathlib import Path
from typing import Any, List, Union

from .models import Book, RatingMatrix, UserProfile, ValidationError


SAMPLE_BOOKS: List[Book] = [
    Book(
        book_id="b1",
        title="Whispers of the Valley",
        author="Anita Rao",
        genres=("Romance", "Contemporary", "Fiction"),
        tags=("slow-burn", "heartwarming", "rural"),
        length_hours=6,
        summary="A gentle tale of two strangers who find comfort and courage in a small valley town.",
        rating=4.2,
    ),
    Book(
        book_id="b2",
        title="The Clockmaker's Paradox",
        author="Max Ellery",
        genres=("Science Fiction", "Mystery", "Fiction"),
        tags=("time travel", "twist", "clever"),
        length_hours=9,
        summary="A sleuth entangled in a timeline he cannot trust, with clues hidden between tenses.",
        rating=4.7,
    ),
    Book(
        book_id="b3",
        title="Ink & Ivory",
        author="Zara Malik",
        genres=("Literary", "Drama", "Fiction"),
        tags=("coming-of-age", "art", "city"),
        length_hours=7,
        summary="A young artist navigates love, loss, and ambition in a sprawling coastal city.",
        rating=4.5,
    ),
    Book(
        book_id="b4",
        title="Midnight in Kashi",
        author="R. Sen",
        genres=("Historical", "Mystery", "Fiction"),
        tags=("India", "river", "rituals"),
        length_hours=5,
        summary="An archivist uncovers a century-old secret along the ghats, where time moves like water.",
        rating=4.3,
    ),
    Book(
        book_id="b5",
        title="Quantum Tea & Other Stories",
        author="J. Liu",
        genres=("Short Stories", "Speculative", "Fiction"),
        tags=("anthology", "imaginative", "bite-sized"),
        length_hours=3,
        summary="Playful, thought-provoking shorts brewed with physics and feelings.",
        rating=4.1,
    ),
    Book(
        book_id="b6",
        title="Edge of the Monsoon",
        author="K. Narayan",
        genres=("Adventure", "Thriller", "Fiction"),
        tags=("coast", "storm", "survival"),
        length_hours=8,
        summary="A rescue diver races against a deadly storm to uncover a smuggling ring at sea.",
        rating=4.4,
    ),
    Book(
        book_id="b7",
        title="Algorithms for the Heart",
        author="Priya Mehta",
        genres=("Romance", "Humor", "Fiction"),
        tags=("tech", "witty", "startup"),
        length_hours=4,
        summary="Two rival engineers create a dating algorithm and accidentally optimize each other.",
        rating=4.6,
    ),
    Book(
        book_id="b9",
        title="The Art of Mindful Living",
        author="Dr. Sarah Chen",
        genres=("Self-Help", "Psychology", "Non-Fiction"),
        tags=("mindfulness", "meditation", "wellness"),
        length_hours=4,
        summary="A practical guide to incorporating mindfulness into everyday life for better mental health.",
        rating=4.8,
    ),
    Book(
        book_id="b10",
        title="Digital Minimalism",
        author="Cal Newport",
        genres=("Technology", "Lifestyle", "Non-Fiction"),
        tags=("productivity", "technology", "minimalism"),
        length_hours=6,
        summary="A philosophy for intentional technology use in a world of overwhelming digital clutter.",
        rating=4.5,
    ),
    Book(
        book_id="b13",
        title="The Psychology of Money",
        author="Morgan Housel",
        genres=("Finance", "Psychology", "Non-Fiction"),
        tags=("money", "psychology", "investing"),
        length_hours=7,
        summary="Timeless lessons on wealth, greed, and happiness from the intersection of psychology and finance.",
        rating=4.9,
    ),
]

# Toy user base for collaborative filtering
SAMPLE_RATINGS = {
    "u1": {"b1": 5, "b3": 4, "b7": 5},
    "u2": {"b2": 4, "b4": 5, "b6": 4},
    "u3": {"b1": 4, "b2": 5, "b8": 4},
    "u4": {"b5": 5, "b3": 4, "b2": 3},
}


def sample_ratings() -> RatingMatrix:
    """Fresh, writable copy of the toy rating matrix."""
    return RatingMatrix.from_dict(SAMPLE_RATINGS)


def _read_json(path: Union[str, Path]) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e


def load_catalog(path: Union[str, Path]) -> List[Book]:
    """Load books from a JSON list (or {"books": [...]})."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("books")
    if not isinstance(data, list):
        raise ValidationError(f"{path} must contain a list of books")
    return [Book.from_dict(record) for record in data]


def load_ratings(path: Union[str, Path]) -> RatingMatrix:
    """Load a user -> book -> rating matrix."""
    return RatingMatrix.from_dict(_read_json(path))


def load_profile(path: Union[str, Path]) -> UserProfile:
    return UserProfile.from_dict(_read_json(path))
