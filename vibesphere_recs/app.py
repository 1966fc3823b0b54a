"""
VibeSphere Recs - Streamlit Demo
================================

Interactive page for the hybrid book recommender.

Run with:
    streamlit run vibesphere_recs/app.py
"""

import streamlit as st

from vibesphere_recs.catalog import SAMPLE_BOOKS, sample_ratings
from vibesphere_recs.config import HISTORY_TAG_LIMIT, NUM_RECOMMENDATIONS
from vibesphere_recs.models import UserProfile
from vibesphere_recs.recommender import RecommendationEngine, RecommendationOutput

DEMO_USER_ID = "demo"


# =============================================================================
# PAGE CONFIG
# =============================================================================
st.set_page_config(
    page_title="VibeSphere Recs",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded"
)

# =============================================================================
# CUSTOM CSS
# =============================================================================
st.markdown("""
<style>
    .main-header {
        font-size: 3rem;
        font-weight: bold;
        background: linear-gradient(90deg, #6366f1, #a855f7);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        text-align: center;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        text-align: center;
        color: #888;
        margin-bottom: 2rem;
    }
    .book-card {
        background: linear-gradient(135deg, #1e1b4b 0%, #312e81 100%);
        border-radius: 12px;
        padding: 1.2rem;
        margin-bottom: 1rem;
        border-left: 4px solid #a855f7;
    }
    .book-title {
        font-size: 1.1rem;
        font-weight: 600;
        color: #fff;
        margin-bottom: 0.3rem;
    }
    .author-name {
        font-size: 0.9rem;
        color: #c7d2fe;
        margin-bottom: 0.5rem;
    }
    .reason {
        font-size: 0.85rem;
        color: #a5b4fc;
        font-style: italic;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

@st.cache_resource
def get_recommendation_engine() -> RecommendationEngine:
    """Get or create the recommendation engine (cached)."""
    return RecommendationEngine(SAMPLE_BOOKS, sample_ratings())


def catalog_vocabulary(engine: RecommendationEngine):
    """Sorted genres and tags available in the catalog."""
    genres, tags = set(), set()
    for book in engine.catalog:
        genres.update(book.genres)
        tags.update(book.tags)
    return sorted(genres), sorted(tags)


def render_book_card(rec, index: int):
    """Render a single book recommendation as a card."""
    with st.container():
        col1, col2 = st.columns([5, 1])

        with col1:
            reasons = "".join(
                f'<div class="reason">💡 {reason}</div>' for reason in rec.reasons
            )
            st.markdown(f"""
            <div class="book-card">
                <div class="book-title">{index}. {rec.title}</div>
                <div class="author-name">{rec.author} · {', '.join(rec.genres)}</div>
                {reasons}
            </div>
            """, unsafe_allow_html=True)

        with col2:
            st.metric("Score", f"{rec.score:.2f}")


def render_recommendations(output: RecommendationOutput):
    """Render the full recommendation output."""
    st.markdown("---")
    st.subheader("📖 Recommended for you")

    if not output.recommendations:
        st.info("No recommendations yet. Try picking a few genres.")
        return

    for i, rec in enumerate(output.recommendations, 1):
        render_book_card(rec, i)

    st.markdown("---")
    st.download_button(
        label="📄 Download JSON",
        data=output.to_json(),
        file_name=f"vibesphere_recs_{output.user_id}.json",
        mime="application/json"
    )


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    """Main Streamlit app."""
    engine = get_recommendation_engine()
    all_genres, all_tags = catalog_vocabulary(engine)

    st.markdown('<h1 class="main-header">📚 VibeSphere</h1>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Where moods meet stories</p>', unsafe_allow_html=True)

    with st.sidebar:
        st.header("⚙️ Your Preferences")

        favorite_genres = st.multiselect("Favorite genres", all_genres)
        history_tags = st.multiselect(
            "Tags you've explored",
            all_tags,
            max_selections=HISTORY_TAG_LIMIT,
        )
        use_budget = st.checkbox("I have a reading time budget", value=True)
        time_budget = st.slider("Hours", min_value=1, max_value=20, value=6, disabled=not use_budget)
        num_recs = st.slider(
            "Number of recommendations",
            min_value=1,
            max_value=len(engine.catalog),
            value=min(NUM_RECOMMENDATIONS, len(engine.catalog)),
        )

        st.markdown("---")
        with st.expander("ℹ️ How it works"):
            st.markdown("""
            1. 🎯 Matches your genres, explored tags and time budget
            2. 👥 Finds the readers whose ratings look most like yours
            3. ⚖️ Blends both signals (60% content, 40% readers)
            4. 💬 Explains every pick
            """)

    profile = UserProfile(
        user_id=DEMO_USER_ID,
        name="You",
        favorite_genres=set(favorite_genres),
        history_tags=list(history_tags),
        time_budget_hours=float(time_budget) if use_budget else None,
    )

    render_recommendations(engine.recommend(profile, n_recommendations=num_recs))


if __name__ == "__main__":
    main()
