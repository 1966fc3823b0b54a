from unittest.mock import patch

import numpy as np
import pytest

from vibesphere_recs.config import ScoringWeights
from vibesphere_recs.models import Book, UserProfile
from vibesphere_recs.scoring import (
    HybridScorer,
    ScoredBook,
    hybrid_recommendations,
    rank_neighbors,
    user_similarity,
)


def _book(book_id, genres=(), tags=(), hours=5):
    return Book(book_id=book_id, title=f"Title {book_id}", genres=genres, tags=tags, length_hours=hours)


def test_concrete_scenario(mystery_reader, catalog, empty_ratings):
    results = HybridScorer().recommend(mystery_reader, empty_ratings, catalog)

    assert [r.book_id for r in results] == ["A", "B"]
    a, b = results
    assert a.breakdown.content_score == pytest.approx(4.6)
    assert a.final_score == pytest.approx(2.76)
    assert b.breakdown.content_score == pytest.approx(2.0)
    assert b.final_score == pytest.approx(1.2)


def test_concrete_scenario_reasons(mystery_reader, catalog, empty_ratings):
    a, b = HybridScorer().recommend(mystery_reader, empty_ratings, catalog)

    assert list(a.reasons) == [
        "Matches your genres: Mystery",
        "Similar to tags you've explored: twist",
        "~9h fits your time budget",
    ]
    assert list(b.reasons) == ["~6h fits your time budget"]


def test_missing_user_returns_empty(catalog, empty_ratings):
    assert HybridScorer().recommend(None, empty_ratings, catalog) == []
    assert HybridScorer().recommend(None, empty_ratings, catalog, reason_for="A") == []


def test_empty_catalog_returns_empty(mystery_reader, empty_ratings):
    assert HybridScorer().recommend(mystery_reader, empty_ratings, []) == []


def test_plain_dict_ratings_accepted(mystery_reader, catalog):
    results = HybridScorer().recommend(mystery_reader, {}, catalog)
    assert len(results) == 2
    assert all(isinstance(r, ScoredBook) for r in results)


def test_deterministic_ordering():
    reader = UserProfile(user_id="r", favorite_genres={"Drama"})
    # Every book ties at 0
    catalog = [_book(f"t{i}") for i in range(10)]
    scorer = HybridScorer()

    first = [r.book_id for r in scorer.recommend(reader, {}, catalog, top_n=10)]
    second = [r.book_id for r in scorer.recommend(reader, {}, catalog, top_n=10)]

    assert first == second == [f"t{i}" for i in range(10)]


def test_genre_overlap_adds_two_per_hit():
    book = _book("g", genres=("Mystery", "Fiction", "Drama"))
    with_overlap = UserProfile(user_id="r", favorite_genres={"Mystery", "Fiction"})
    without_overlap = UserProfile(user_id="r", favorite_genres={"Poetry"})
    scorer = HybridScorer()

    [hit] = scorer.recommend(with_overlap, {}, [book])
    [miss] = scorer.recommend(without_overlap, {}, [book])

    assert hit.breakdown.content_score - miss.breakdown.content_score == pytest.approx(2 * 2)


def test_tag_hits_use_recent_history_window():
    book = _book("t", tags=("oldest", "newest"))
    history = ["oldest"] + [f"filler{i}" for i in range(10)] + ["newest"]
    reader = UserProfile(user_id="r", history_tags=history)

    [result] = HybridScorer().recommend(reader, {}, [book])

    assert result.breakdown.matched_tags == ["newest"]
    assert result.breakdown.content_score == pytest.approx(1.5)


def test_time_budget_bonus_never_negative():
    reader = UserProfile(user_id="r", time_budget_hours=2)
    [result] = HybridScorer().recommend(reader, {}, [_book("long", hours=40)])

    assert result.breakdown.time_budget_bonus == 0.0
    assert result.final_score == 0.0
    assert list(result.reasons) == ["~40h fits your time budget"]


def test_no_time_budget_no_bonus_or_reason():
    reader = UserProfile(user_id="r")
    [result] = HybridScorer().recommend(reader, {}, [_book("x", hours=5)])

    assert result.breakdown.time_budget_bonus == 0.0
    assert result.reasons == ()


def test_already_rated_penalty_is_exactly_two():
    reader = UserProfile(user_id="r", favorite_genres={"Mystery"}, time_budget_hours=5)
    rated = _book("rated", genres=("Mystery",))
    fresh = _book("fresh", genres=("Mystery",))
    ratings = {"r": {"rated": 4}, "other": {"x": 3}}

    results = {r.book_id: r for r in HybridScorer().recommend(reader, ratings, [rated, fresh])}

    assert results["fresh"].final_score - results["rated"].final_score == pytest.approx(2.0)
    assert results["rated"].breakdown.penalty == -2.0


def test_already_rated_books_are_penalized_not_excluded():
    reader = UserProfile(user_id="r", favorite_genres={"Mystery", "Fiction"})
    book = _book("seen", genres=("Mystery", "Fiction"))

    results = HybridScorer().recommend(reader, {"r": {"seen": 5}}, [book])

    assert [r.book_id for r in results] == ["seen"]
    assert results[0].final_score == pytest.approx(0.6 * 4 - 2)


def test_top_n_truncation(mystery_reader, empty_ratings):
    catalog = [_book(f"b{i}") for i in range(12)]
    scorer = HybridScorer()

    assert len(scorer.recommend(mystery_reader, empty_ratings, catalog)) == 8
    assert len(scorer.recommend(mystery_reader, empty_ratings, catalog, top_n=3)) == 3
    assert len(scorer.recommend(mystery_reader, empty_ratings, catalog[:2], top_n=5)) == 2


def test_top_n_must_be_positive(mystery_reader, catalog):
    with pytest.raises(ValueError):
        HybridScorer().recommend(mystery_reader, {}, catalog, top_n=0)


def test_reason_for_matches_full_ranking(sample_engine):
    reader = UserProfile(
        user_id="u1",
        favorite_genres={"Mystery", "Romance"},
        history_tags=["twist", "witty"],
        time_budget_hours=6,
    )
    scorer = HybridScorer()
    catalog = sample_engine.catalog
    ratings = sample_engine.ratings

    full = scorer.recommend(reader, ratings, catalog, top_n=len(catalog))
    for item in full:
        assert scorer.recommend(reader, ratings, catalog, reason_for=item.book_id) == list(item.reasons)


def test_reason_for_uses_untruncated_ranking(mystery_reader, catalog, empty_ratings):
    # B ranks second, outside top_n=1, but its reasons are still available
    reasons = HybridScorer().recommend(mystery_reader, empty_ratings, catalog, top_n=1, reason_for="B")
    assert reasons == ["~6h fits your time budget"]


def test_reason_for_unknown_book(mystery_reader, catalog, empty_ratings):
    assert HybridScorer().reasons_for(mystery_reader, empty_ratings, catalog, "missing") == []


def test_collaborative_score_weighted_by_similarity():
    reader = UserProfile(user_id="me")
    ratings = {
        "me": {"x": 5, "y": 3},
        "twin": {"x": 5, "y": 3, "target": 4},
        "stranger": {"z": 2, "target": 2},
    }

    [result] = HybridScorer().recommend(reader, ratings, [_book("target")])

    # stranger has similarity 0 and contributes no weight
    assert result.breakdown.collaborative_score == pytest.approx(4.0)
    assert result.final_score == pytest.approx(0.4 * 4.0)
    assert list(result.reasons) == ["Similar readers loved this"]


def test_zero_similarity_neighbors_give_no_collaborative_signal():
    reader = UserProfile(user_id="me")
    ratings = {"me": {"x": 5}, "other": {"target": 5}}

    [result] = HybridScorer().recommend(reader, ratings, [_book("target")])

    assert result.breakdown.collaborative_score == 0.0
    assert result.reasons == ()


def test_only_top_three_neighbors_count():
    reader = UserProfile(user_id="me")
    ratings = {
        "me": {"a": 5, "b": 5, "c": 5},
        "n1": {"a": 5, "b": 5, "c": 5, "target": 5},
        "n2": {"a": 5, "b": 5, "target": 5},
        "n3": {"a": 5, "target": 5},
        "far": {"a": 1, "q": 5, "r": 5, "s": 5, "target": 1},
    }

    [result] = HybridScorer().recommend(reader, ratings, [_book("target")])

    assert [uid for uid, _ in rank_neighbors("me", ratings)] == ["n1", "n2", "n3"]
    assert result.breakdown.collaborative_score == pytest.approx(5.0)


def test_malformed_ratings_are_skipped():
    reader = UserProfile(user_id="me")
    ratings = {
        "me": {"x": 5, "bad": 9},
        "twin": {"x": 5, "target": "4", "other": 3},
    }

    results = HybridScorer().recommend(reader, ratings, [_book("target"), _book("other"), _book("bad")])
    by_id = {r.book_id: r for r in results}

    assert by_id["target"].breakdown.collaborative_score == 0.0
    assert by_id["other"].breakdown.collaborative_score == pytest.approx(3.0)
    # Out-of-range cell is ignored, so no already-rated penalty
    assert by_id["bad"].breakdown.penalty == 0.0


def test_inputs_are_not_mutated(mystery_reader, catalog):
    ratings = {"reader": {"A": 3}, "other": {"A": 4, "B": 5}}
    before_ratings = {uid: dict(row) for uid, row in ratings.items()}
    before_profile = mystery_reader.to_dict()
    before_catalog = list(catalog)

    HybridScorer().recommend(mystery_reader, ratings, catalog)

    assert ratings == before_ratings
    assert mystery_reader.to_dict() == before_profile
    assert catalog == before_catalog


def test_custom_weights(mystery_reader, catalog, empty_ratings):
    weights = ScoringWeights(content_weight=1.0, collaborative_weight=0.0)
    results = hybrid_recommendations(mystery_reader, empty_ratings, catalog, weights=weights)

    assert results[0].final_score == pytest.approx(4.6)


def test_hybrid_recommendations_reason_mode(mystery_reader, catalog, empty_ratings):
    reasons = hybrid_recommendations(mystery_reader, empty_ratings, catalog, reason_for="A")
    assert reasons[0] == "Matches your genres: Mystery"


def test_self_similarity_is_one():
    v = {"b1": 5, "b2": 3, "b3": 1}
    assert user_similarity(v, v) == pytest.approx(1.0)


def test_similarity_with_zero_vector_is_zero():
    assert user_similarity({"b1": 5}, {}) == 0.0
    assert user_similarity({}, {}) == 0.0


def test_similarity_over_union_of_books():
    a = {"x": 3, "y": 4}
    b = {"x": 3}
    # dot = 9, |a| = 5, |b| = 3
    assert user_similarity(a, b) == pytest.approx(9 / 15)
    assert user_similarity(a, {"z": 2}) == 0.0


def test_rank_neighbors_excludes_target():
    ratings = {"me": {"x": 5}, "you": {"x": 4}, "them": {"y": 1}}

    neighbors = rank_neighbors("me", ratings, k=5)

    assert [uid for uid, _ in neighbors] == ["you", "them"]
    assert neighbors[0][1] == pytest.approx(1.0)
    assert neighbors[1][1] == 0.0


def test_rank_neighbors_unknown_target():
    neighbors = rank_neighbors("ghost", {"a": {"x": 1}, "b": {"y": 2}})
    assert [sim for _, sim in neighbors] == [0.0, 0.0]


def test_scored_book_to_dict(mystery_reader, catalog, empty_ratings):
    [a, _] = HybridScorer().recommend(mystery_reader, empty_ratings, catalog)
    data = a.to_dict()

    assert data["book_id"] == "A"
    assert data["final_score"] == pytest.approx(2.76)
    assert data["reasons"][0] == "Matches your genres: Mystery"


def test_non_finite_scores_are_dropped(mystery_reader, catalog, empty_ratings):
    # 0 * inf is nan for every book
    weights = ScoringWeights(genre_hit=float("inf"), content_weight=0.0)
    scorer = HybridScorer(weights=weights)

    assert scorer.recommend(mystery_reader, empty_ratings, catalog) == []
    assert scorer.recommend(mystery_reader, empty_ratings, catalog, reason_for="A") == []


def test_non_finite_book_left_out_of_ranking(mystery_reader, catalog, empty_ratings):
    scorer = HybridScorer()
    score_book = HybridScorer._score_book

    def nan_for_a(self, book, *args):
        breakdown = score_book(self, book, *args)
        if book.book_id == "A":
            breakdown.final_score = float("nan")
        return breakdown

    with patch.object(HybridScorer, "_score_book", nan_for_a):
        results = scorer.recommend(mystery_reader, empty_ratings, catalog)
        reasons = scorer.recommend(mystery_reader, empty_ratings, catalog, reason_for="A")

    assert [r.book_id for r in results] == ["B"]
    assert results[0].final_score == pytest.approx(1.2)
    assert reasons == []


def test_numpy_integer_rating_triggers_penalty():
    reader = UserProfile(user_id="r")
    ratings = {"r": {"seen": np.int64(4)}}

    [result] = HybridScorer().recommend(reader, ratings, [_book("seen")])

    assert result.breakdown.penalty == -2.0
