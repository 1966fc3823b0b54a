import pytest

from vibesphere_recs.catalog import SAMPLE_BOOKS, sample_ratings
from vibesphere_recs.models import Book, RatingMatrix, UserProfile
from vibesphere_recs.recommender import RecommendationEngine


@pytest.fixture
def mystery_reader():
    return UserProfile(
        user_id="reader",
        name="Reader",
        favorite_genres={"Mystery"},
        history_tags=["twist"],
        time_budget_hours=6,
    )


@pytest.fixture
def book_a():
    return Book(
        book_id="A",
        title="Book A",
        author="Author A",
        genres=("Mystery", "Fiction"),
        tags=("twist", "clever"),
        length_hours=9,
    )


@pytest.fixture
def book_b():
    return Book(
        book_id="B",
        title="Book B",
        author="Author B",
        genres=("Romance",),
        tags=("slow-burn",),
        length_hours=6,
    )


@pytest.fixture
def catalog(book_a, book_b):
    return [book_a, book_b]


@pytest.fixture
def empty_ratings():
    return RatingMatrix()


@pytest.fixture
def sample_engine():
    return RecommendationEngine(SAMPLE_BOOKS, sample_ratings())
