"""
Configuration and constants for VibeSphere Recs recommendation system.
"""
import os
from dataclasses import dataclass
from typing import Dict

# =============================================================================
# GOOGLE BOOKS API CONFIGURATION
# =============================================================================
GOOGLE_BOOKS_API_KEY = os.environ.get("GOOGLE_BOOKS_API_KEY", "")
GOOGLE_BOOKS_API_URL = os.environ.get(
    "GOOGLE_BOOKS_API_URL", "https://www.googleapis.com/books/v1/volumes"
)

# Google Books caps maxResults at 40
GOOGLE_BOOKS_PAGE_SIZE = 40
REQUEST_TIMEOUT = 10  # seconds

# Reading speed used to turn page counts into hours
PAGES_PER_HOUR = 40
DEFAULT_LENGTH_HOURS = 6.0

# =============================================================================
# RATINGS
# =============================================================================
MIN_RATING = 1
MAX_RATING = 5
MAX_BOOK_RATING = 5.0  # aggregate catalog rating (0-5 float)

# =============================================================================
# SCORING WEIGHTS
# =============================================================================
@dataclass(frozen=True)
class ScoringWeights:
    """Weights for the hybrid scoring function."""
    # Blend (content-leaning)
    content_weight: float = 0.6
    collaborative_weight: float = 0.4

    # Content-based multipliers
    genre_hit: float = 2.0
    tag_hit: float = 1.5

    # max(0, bonus - decay * |length - budget|)
    time_budget_bonus: float = 2.0
    time_budget_decay: float = 0.3

    # Applied when the target user already rated the book
    already_rated_penalty: float = -2.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "content_weight": self.content_weight,
            "collaborative_weight": self.collaborative_weight,
            "genre_hit": self.genre_hit,
            "tag_hit": self.tag_hit,
            "time_budget_bonus": self.time_budget_bonus,
            "time_budget_decay": self.time_budget_decay,
            "already_rated_penalty": self.already_rated_penalty,
        }

DEFAULT_WEIGHTS = ScoringWeights()

# =============================================================================
# NEIGHBORS / HISTORY
# =============================================================================
NUM_NEIGHBORS = 3

# Only the most recent tags count towards tag hits
HISTORY_TAG_WINDOW = 10

# Tags kept on the profile
HISTORY_TAG_LIMIT = 15

# =============================================================================
# CACHING CONFIGURATION
# =============================================================================
CACHE_DIR = os.environ.get(
    "VIBESPHERE_CACHE_DIR", os.path.join(os.path.dirname(__file__), ".cache")
)
CACHE_TTL_HOURS = int(os.environ.get("VIBESPHERE_CACHE_TTL_HOURS", "24"))

# =============================================================================
# OUTPUT / LOGGING CONFIGURATION
# =============================================================================
NUM_RECOMMENDATIONS = 8
OUTPUT_FORMAT = "json"  # json, csv or simple
LOG_LEVEL = os.environ.get("VIBESPHERE_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# =============================================================================
# DISCOVERY QUERIES (mood / genre -> Google Books query)
# =============================================================================
MOOD_QUERIES = {
    "happy": ["subject:humor", "subject:comedy", "uplifting stories", "feel-good fiction"],
    "sad": ["emotional stories", "subject:drama", "tear-jerker", "moving fiction"],
    "romantic": ["subject:romance", "love stories", "romantic fiction", "contemporary romance"],
    "adventurous": ["subject:adventure", "action fiction", "thriller", "quest stories"],
    "mysterious": ["subject:mystery", "detective stories", "crime fiction", "suspense"],
    "inspiring": ["motivational", "subject:biography", "inspiring stories", "self-help"],
    "calm": ["peaceful reads", "cozy fiction", "gentle stories", "meditation"],
    "dark": ["subject:thriller", "psychological fiction", "dark fantasy", "noir"],
    "fantastical": ["subject:fantasy", "magical realism", "science fiction", "epic fantasy"],
    "thoughtful": ["subject:philosophy", "literary fiction", "contemplative", "intellectual"],
}

GENRE_QUERIES = {
    "fiction": "subject:fiction",
    "nonfiction": "subject:nonfiction",
    "mystery": "subject:mystery",
    "romance": "subject:romance",
    "fantasy": "subject:fantasy",
    "sciencefiction": "subject:science fiction",
    "science fiction": "subject:science fiction",
    "thriller": "subject:thriller",
    "horror": "subject:horror",
    "biography": "subject:biography",
    "history": "subject:history",
    "selfhelp": "subject:self-help",
    "self-help": "subject:self-help",
    "business": "subject:business",
    "poetry": "subject:poetry",
    "drama": "subject:drama",
    "comedy": "subject:comedy",
}

DEFAULT_DISCOVERY_QUERY = "bestsellers"
