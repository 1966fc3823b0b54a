"""
Main Recommendation Engine
==========================

Orchestrates recommendations for the application layer:
1. Hold a catalog snapshot and the rating matrix
2. Apply reader actions (rate a book, record an explored book)
3. Score and rank the catalog for a reader
4. Package results with reasons for serialization

The scorer itself is pure; this module owns the mutable state and hands
the scorer snapshots.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import NUM_RECOMMENDATIONS
from .explainer import ReasonGenerator
from .models import Book, RatingMatrix, UserProfile
from .scoring import HybridScorer, ScoredBook

logger = logging.getLogger(__name__)


@dataclass
class RecommendationResult:
    """Single book recommendation with reasons."""
    book_id: str
    title: str
    author: str
    genres: List[str]
    length_hours: float
    cover: str
    score: float
    reasons: List[str]
    explanation: str

    # Optional detailed breakdown
    breakdown: Optional[Dict] = None

    @classmethod
    def from_scored(cls, scored: ScoredBook, explanation: str) -> "RecommendationResult":
        book = scored.book
        return cls(
            book_id=book.book_id,
            title=book.title,
            author=book.author,
            genres=list(book.genres),
            length_hours=book.length_hours,
            cover=book.cover,
            score=scored.final_score,
            reasons=list(scored.reasons),
            explanation=explanation,
            breakdown=scored.breakdown.to_dict() if scored.breakdown else None,
        )


@dataclass
class RecommendationOutput:
    """Complete recommendation output."""
    user_id: Optional[str]
    user_name: str
    catalog_size: int
    recommendations: List[RecommendationResult] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "catalog_size": self.catalog_size,
            "recommendations": [
                {
                    "book_id": r.book_id,
                    "title": r.title,
                    "author": r.author,
                    "genres": r.genres,
                    "length_hours": r.length_hours,
                    "cover": r.cover,
                    "score": round(r.score, 4),
                    "reasons": r.reasons,
                    "explanation": r.explanation,
                    "breakdown": r.breakdown,
                }
                for r in self.recommendations
            ]
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class RecommendationEngine:
    """
    Recommendation engine over an in-memory catalog and rating matrix.

    Usage:
        engine = RecommendationEngine(SAMPLE_BOOKS, sample_ratings())
        result = engine.recommend(profile)
        print(result.to_json())
    """

    def __init__(
        self,
        catalog: Iterable[Book] = (),
        ratings: Optional[RatingMatrix] = None,
        scorer: Optional[HybridScorer] = None,
    ):
        """
        Initialize recommendation engine.

        Args:
            catalog: Books to recommend from (duplicate ids are dropped)
            ratings: Rating matrix (empty if None)
            scorer: Pre-configured scorer (default weights if None)
        """
        self._catalog: List[Book] = []
        self._book_index: Dict[str, Book] = {}
        self.ratings = ratings if ratings is not None else RatingMatrix()
        self.scorer = scorer or HybridScorer()
        self.explainer = ReasonGenerator()
        self.extend_catalog(catalog)

    @property
    def catalog(self) -> List[Book]:
        return list(self._catalog)

    def get_book(self, book_id: str) -> Book:
        try:
            return self._book_index[book_id]
        except KeyError:
            raise KeyError(f"Unknown book id: {book_id}") from None

    def extend_catalog(self, books: Iterable[Book]) -> int:
        """Append books not already in the catalog. Returns how many were added."""
        added = 0
        for book in books:
            if book.book_id in self._book_index:
                continue
            self._book_index[book.book_id] = book
            self._catalog.append(book)
            added += 1
        if added:
            logger.info("Catalog extended by %d books (%d total)", added, len(self._catalog))
        return added

    # =========================================================================
    # READER ACTIONS
    # =========================================================================

    def rate(self, user_id: str, book_id: str, rating: int) -> None:
        """Record (or replace) a rating for a catalog book."""
        self.get_book(book_id)
        self.ratings.set_rating(user_id, book_id, rating)
        logger.info("User %s rated %s: %d", user_id, book_id, rating)

    def record_book(self, profile: UserProfile, book_id: str) -> None:
        """Record that the reader explored or saved a book."""
        profile.record_book(self.get_book(book_id))

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def recommend(
        self,
        profile: Optional[UserProfile],
        n_recommendations: int = NUM_RECOMMENDATIONS,
    ) -> RecommendationOutput:
        """
        Generate recommendations for a reader.

        Args:
            profile: Reader profile (None yields an empty output)
            n_recommendations: Number of books to recommend

        Returns:
            RecommendationOutput with ranked recommendations
        """
        if profile is None:
            logger.info("No reader profile given; returning no recommendations")
            return RecommendationOutput(
                user_id=None,
                user_name="",
                catalog_size=len(self._catalog),
            )

        scored = self.scorer.recommend(
            profile.snapshot(),
            self.ratings.snapshot(),
            list(self._catalog),
            top_n=n_recommendations,
        )

        recommendations = [
            RecommendationResult.from_scored(s, self.explainer.summarize(list(s.reasons)))
            for s in scored
        ]
        logger.info(
            "Generated %d recommendations for %s from %d books",
            len(recommendations), profile.user_id, len(self._catalog),
        )

        return RecommendationOutput(
            user_id=profile.user_id,
            user_name=profile.name,
            catalog_size=len(self._catalog),
            recommendations=recommendations,
        )

    def explain(self, profile: Optional[UserProfile], book_id: str) -> List[str]:
        """Reasons for one book, as computed over the full catalog."""
        if profile is None:
            return []
        return self.scorer.reasons_for(
            profile.snapshot(),
            self.ratings.snapshot(),
            list(self._catalog),
            book_id,
        )
