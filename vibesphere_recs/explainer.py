"""
Explanation Generator Module
============================

Turns a score breakdown into short, human-readable reasons.

Reasons always appear in this order, each only when it applies:
1. Genre matches
2. Recently explored tag matches
3. Collaborative signal from similar readers
4. Time budget fit

A book may end up with no reasons at all; it still ranks.
"""

from typing import TYPE_CHECKING, List, Union

if TYPE_CHECKING:
    from .scoring import ScoreBreakdown


def format_hours(hours: Union[int, float]) -> str:
    """Render 9.0 as '9' and 6.5 as '6.5'."""
    value = float(hours)
    if value.is_integer():
        return str(int(value))
    return str(value)


class ReasonGenerator:
    """Builds the ordered reason list for a scored book."""

    GENRE_TEMPLATE = "Matches your genres: {}"
    TAG_TEMPLATE = "Similar to tags you've explored: {}"
    COLLABORATIVE_REASON = "Similar readers loved this"
    TIME_BUDGET_TEMPLATE = "~{}h fits your time budget"

    def generate(self, breakdown: "ScoreBreakdown") -> List[str]:
        """
        Generate reasons for a book.

        Args:
            breakdown: Score breakdown from the scoring engine

        Returns:
            Reason strings in fixed order (possibly empty)
        """
        reasons = []

        if breakdown.genre_hits > 0:
            reasons.append(self.GENRE_TEMPLATE.format(", ".join(breakdown.matched_genres)))

        if breakdown.tag_hits > 0:
            reasons.append(self.TAG_TEMPLATE.format(", ".join(breakdown.matched_tags)))

        if breakdown.neighbor_weight > 0:
            reasons.append(self.COLLABORATIVE_REASON)

        if breakdown.has_time_budget:
            reasons.append(self.TIME_BUDGET_TEMPLATE.format(format_hours(breakdown.length_hours)))

        return reasons

    def summarize(self, reasons: List[str]) -> str:
        """Single-line explanation for compact output formats."""
        if not reasons:
            return "Picked from the wider catalog"
        return "; ".join(reasons)
