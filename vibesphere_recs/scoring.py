"""
Hybrid Scoring Engine
=====================

Ranks a book catalog for one reader using a weighted blend of:
1. Content affinity (genre matches, recently explored tags, time budget fit)
2. Collaborative affinity (how the most similar readers rated the book)
3. Already-rated penalty (discourages re-recommending, does not exclude)

Mathematical Formulation:
-------------------------

Final Score = w_content × S_content + w_collab × S_collab + P

where:
    S_content = 2 × genre_hits + 1.5 × tag_hits + max(0, 2 - 0.3 × |len - budget|)
    S_collab  = Σ(sim_i × r_i) / Σ(sim_i)   over the top-3 neighbors who rated the book
    sim(a, b) = a·b / (‖a‖ ‖b‖)              over the union of rated books, missing = 0
    P         = -2 if the reader already rated the book, else 0

All multipliers come from config.ScoringWeights.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix
from sklearn.metrics.pairwise import cosine_similarity

from .config import (
    DEFAULT_WEIGHTS,
    HISTORY_TAG_WINDOW,
    NUM_NEIGHBORS,
    NUM_RECOMMENDATIONS,
    ScoringWeights,
)
from .explainer import ReasonGenerator
from .models import Book, UserProfile, is_valid_rating

logger = logging.getLogger(__name__)

RatingRows = Mapping[str, Mapping[str, int]]


@dataclass
class ScoreBreakdown:
    """Detailed breakdown of how a book's score was computed."""
    book_id: str
    final_score: float = 0.0

    # Component scores
    content_score: float = 0.0
    collaborative_score: float = 0.0
    penalty: float = 0.0

    # Content details
    genre_hits: int = 0
    tag_hits: int = 0
    time_budget_bonus: float = 0.0
    matched_genres: List[str] = field(default_factory=list)
    matched_tags: List[str] = field(default_factory=list)
    has_time_budget: bool = False
    length_hours: float = 0.0

    # Sum of neighbor similarities that contributed a rating
    neighbor_weight: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "content_score": round(self.content_score, 4),
            "collaborative_score": round(self.collaborative_score, 4),
            "penalty": self.penalty,
            "time_budget_bonus": round(self.time_budget_bonus, 4),
            "neighbor_weight": round(self.neighbor_weight, 4),
        }


@dataclass(frozen=True)
class ScoredBook:
    """A catalog book with its final score and reasons. Never persisted."""
    book: Book
    final_score: float
    reasons: Tuple[str, ...] = ()
    breakdown: Optional[ScoreBreakdown] = None

    @property
    def book_id(self) -> str:
        return self.book.book_id

    def to_dict(self) -> Dict:
        data = self.book.to_dict()
        data["final_score"] = self.final_score
        data["reasons"] = list(self.reasons)
        return data


# =============================================================================
# SIMILARITY
# =============================================================================

def _clean_row(user_id: str, row: Mapping[str, int]) -> Dict[str, int]:
    """Drop malformed cells instead of failing the whole ranking."""
    clean = {}
    for book_id, rating in row.items():
        if is_valid_rating(rating):
            clean[book_id] = rating
        else:
            logger.debug(
                "Skipping malformed rating %r for user %s, book %s",
                rating, user_id, book_id,
            )
    return clean


def _to_sparse(rows: Sequence[Mapping[str, float]]) -> csr_matrix:
    """Stack rating rows into a users x books sparse matrix (missing = 0)."""
    vocabulary: Dict[str, int] = {}
    data, indices, indptr = [], [], [0]
    for row in rows:
        for book_id, rating in row.items():
            indices.append(vocabulary.setdefault(book_id, len(vocabulary)))
            data.append(float(rating))
        indptr.append(len(indices))

    # At least one column so an all-empty matrix is still well formed
    n_cols = max(len(vocabulary), 1)
    return csr_matrix(
        (np.asarray(data, dtype=float), np.asarray(indices, dtype=int), np.asarray(indptr, dtype=int)),
        shape=(len(rows), n_cols),
    )


def _similarities(target: Mapping[str, float], others: Sequence[Mapping[str, float]]) -> np.ndarray:
    """Cosine similarity of target against each row in others."""
    if not others:
        return np.zeros(0)

    matrix = _to_sparse([target] + list(others))
    # Zero-norm rows come back as 0 from sklearn's normalization
    sims = cosine_similarity(matrix[0], matrix[1:])[0]
    sims = np.nan_to_num(sims, nan=0.0, posinf=0.0, neginf=0.0)
    return np.clip(sims, -1.0, 1.0)


def user_similarity(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """
    Cosine similarity between two sparse rating vectors.

    Returns 0.0 when either vector has zero norm.
    """
    return float(_similarities(a, [b])[0])


def _select_neighbors(
    target_id: str,
    rows: Dict[str, Dict[str, int]],
    k: int,
) -> List[Tuple[str, float]]:
    target_row = rows.get(target_id, {})
    other_ids = [uid for uid in rows if uid != target_id]
    sims = _similarities(target_row, [rows[uid] for uid in other_ids])

    # Stable: equal similarities keep matrix iteration order
    ranked = sorted(zip(other_ids, sims), key=lambda pair: -pair[1])
    return [(uid, float(sim)) for uid, sim in ranked[:k]]


def rank_neighbors(
    target_id: str,
    ratings: RatingRows,
    k: int = NUM_NEIGHBORS,
) -> List[Tuple[str, float]]:
    """
    Top-k most similar readers to target_id.

    Args:
        target_id: Reader to find neighbors for (never returned)
        ratings: user -> book -> rating
        k: Number of neighbors to keep

    Returns:
        List of (user_id, similarity), most similar first
    """
    rows = {uid: _clean_row(uid, row) for uid, row in ratings.items()}
    return _select_neighbors(target_id, rows, k)


# =============================================================================
# SCORER
# =============================================================================

class HybridScorer:
    """
    Hybrid content + collaborative scorer for a book catalog.

    Stateless between calls: every call is a pure function of its inputs,
    which are never mutated.
    """

    def __init__(
        self,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        n_neighbors: int = NUM_NEIGHBORS,
        history_window: int = HISTORY_TAG_WINDOW,
        reason_generator: Optional[ReasonGenerator] = None,
    ):
        """
        Initialize scorer.

        Args:
            weights: Scoring weights configuration
            n_neighbors: How many similar readers inform the collaborative score
            history_window: How many of the most recent history tags count
            reason_generator: Builds the per-book reasons
        """
        self.weights = weights
        self.n_neighbors = n_neighbors
        self.history_window = history_window
        self.reason_generator = reason_generator or ReasonGenerator()

    def score_catalog(
        self,
        target_user: Optional[UserProfile],
        ratings: RatingRows,
        catalog: Sequence[Book],
    ) -> List[ScoredBook]:
        """
        Score every catalog book for target_user.

        Returns:
            All finite-scored books, sorted descending (stable on ties)
        """
        if target_user is None or not catalog:
            return []

        rows = {uid: _clean_row(uid, row) for uid, row in ratings.items()}
        target_ratings = rows.get(target_user.user_id, {})
        neighbors = _select_neighbors(target_user.user_id, rows, self.n_neighbors)
        logger.debug("Neighbors for %s: %s", target_user.user_id, neighbors)

        favorite_genres = set(target_user.favorite_genres)
        history = list(target_user.history_tags)
        recent_tags = set(history[-self.history_window:]) if self.history_window > 0 else set()

        scored = []
        for book in catalog:
            breakdown = self._score_book(
                book, target_user, favorite_genres, recent_tags,
                target_ratings, neighbors, rows,
            )
            if not math.isfinite(breakdown.final_score):
                logger.warning(
                    "Dropping book %s with non-finite score %r",
                    book.book_id, breakdown.final_score,
                )
                continue

            reasons = self.reason_generator.generate(breakdown)
            scored.append(ScoredBook(
                book=book,
                final_score=breakdown.final_score,
                reasons=tuple(reasons),
                breakdown=breakdown,
            ))

        scored.sort(key=lambda s: s.final_score, reverse=True)
        logger.debug("Scored %d of %d books for %s", len(scored), len(catalog), target_user.user_id)
        return scored

    def recommend(
        self,
        target_user: Optional[UserProfile],
        ratings: RatingRows,
        catalog: Sequence[Book],
        top_n: int = NUM_RECOMMENDATIONS,
        reason_for: Optional[str] = None,
    ) -> Union[List[ScoredBook], List[str]]:
        """
        Rank the catalog for target_user.

        Args:
            target_user: Reader profile (None yields an empty result)
            ratings: user -> book -> rating (may be empty)
            catalog: Books to rank (may be empty)
            top_n: Maximum number of results
            reason_for: If given, return only this book's reasons instead

        Returns:
            Up to top_n ScoredBooks, best first; or a list of reason
            strings when reason_for is set
        """
        if top_n < 1:
            raise ValueError(f"top_n must be a positive integer, got {top_n!r}")

        scored = self.score_catalog(target_user, ratings, catalog)

        if reason_for is not None:
            for item in scored:
                if item.book_id == reason_for:
                    return list(item.reasons)
            return []

        return scored[:top_n]

    def reasons_for(
        self,
        target_user: Optional[UserProfile],
        ratings: RatingRows,
        catalog: Sequence[Book],
        book_id: str,
    ) -> List[str]:
        """Reasons attached to book_id in the full ranking (empty if absent)."""
        return self.recommend(target_user, ratings, catalog, reason_for=book_id)

    def _score_book(
        self,
        book: Book,
        user: UserProfile,
        favorite_genres: set,
        recent_tags: set,
        target_ratings: Mapping[str, int],
        neighbors: List[Tuple[str, float]],
        rows: Dict[str, Dict[str, int]],
    ) -> ScoreBreakdown:
        w = self.weights
        breakdown = ScoreBreakdown(book_id=book.book_id, length_hours=book.length_hours)

        # 1. Content
        breakdown.matched_genres = [g for g in book.genres if g in favorite_genres]
        breakdown.matched_tags = [t for t in book.tags if t in recent_tags]
        breakdown.genre_hits = len(breakdown.matched_genres)
        breakdown.tag_hits = len(breakdown.matched_tags)

        if user.time_budget_hours:
            breakdown.has_time_budget = True
            diff = abs(book.length_hours - user.time_budget_hours)
            breakdown.time_budget_bonus = max(0.0, w.time_budget_bonus - w.time_budget_decay * diff)

        breakdown.content_score = (
            w.genre_hit * breakdown.genre_hits
            + w.tag_hit * breakdown.tag_hits
            + breakdown.time_budget_bonus
        )

        # 2. Collaborative
        weighted_sum = 0.0
        sim_sum = 0.0
        for uid, sim in neighbors:
            rating = rows[uid].get(book.book_id)
            if rating is not None:
                weighted_sum += sim * rating
                sim_sum += sim
        if sim_sum > 0:
            breakdown.collaborative_score = weighted_sum / sim_sum
            breakdown.neighbor_weight = sim_sum

        # 3. Penalty
        if book.book_id in target_ratings:
            breakdown.penalty = w.already_rated_penalty

        breakdown.final_score = (
            w.content_weight * breakdown.content_score
            + w.collaborative_weight * breakdown.collaborative_score
            + breakdown.penalty
        )
        return breakdown


def hybrid_recommendations(
    target_user: Optional[UserProfile],
    ratings: RatingRows,
    catalog: Sequence[Book],
    top_n: int = NUM_RECOMMENDATIONS,
    reason_for: Optional[str] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Union[List[ScoredBook], List[str]]:
    """
    Convenience function for one-off scoring.

    Args:
        target_user: Reader profile
        ratings: user -> book -> rating
        catalog: Books to rank
        top_n: Maximum number of results
        reason_for: Book id whose reasons should be returned instead
        weights: Scoring weights

    Returns:
        Ranked ScoredBooks, or reason strings in reason_for mode
    """
    scorer = HybridScorer(weights=weights)
    return scorer.recommend(target_user, ratings, catalog, top_n=top_n, reason_for=reason_for)
