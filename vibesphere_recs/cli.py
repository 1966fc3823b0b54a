"""
Command-Line Interface for VibeSphere Recs
==========================================

Usage:
    vibesphere-recs --user <id> [options]

    or

    python -m vibesphere_recs.cli --user <id> [options]

Options:
    --profile       JSON profile file (flags below override it)
    --genres        Comma-separated favorite genres
    --tags          Comma-separated recently explored tags (oldest first)
    --hours         Reading time budget in hours
    --catalog       JSON catalog file (default: bundled sample catalog)
    --ratings       JSON rating matrix (default: bundled sample ratings)
    --google        Add Google Books search results to the catalog
    --mood          Add Google Books mood discovery results to the catalog
    --num, -n       Number of recommendations (default: 8)
    --reason-for    Print only the reasons for one book id
    --output, -o    Output file path (default: stdout)
    --format        Output format: json, csv or simple (default: json)
    --verbose, -v   Debug logging and tracebacks

Examples:
    vibesphere-recs --user u1 --genres Mystery --tags twist --hours 6
    vibesphere-recs --profile me.json --catalog books.json --ratings ratings.json -n 5
    vibesphere-recs --user u1 --genres Mystery --reason-for b2
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .books_client import BooksAPIError, GoogleBooksClient
from .catalog import SAMPLE_BOOKS, load_catalog, load_profile, load_ratings, sample_ratings
from .config import HISTORY_TAG_LIMIT, NUM_RECOMMENDATIONS
from .models import UserProfile, ValidationError
from .recommender import RecommendationEngine, RecommendationOutput
from .utils import setup_logging

logger = logging.getLogger(__name__)


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='vibesphere-recs',
        description='VibeSphere Recs - hybrid book recommendations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --user u1 --genres Mystery --tags twist --hours 6
  %(prog)s --profile me.json --catalog books.json -n 5
  %(prog)s --user u1 --genres Mystery --reason-for b2

Environment Variables:
  GOOGLE_BOOKS_API_KEY   Google Books API key (optional)
  VIBESPHERE_LOG_LEVEL   Default log level (INFO)
        """
    )

    parser.add_argument('--user', type=str, help='Reader id')
    parser.add_argument('--name', type=str, default=None, help='Reader display name')
    parser.add_argument('--profile', type=str, help='JSON profile file')
    parser.add_argument('--genres', type=str, help='Comma-separated favorite genres')
    parser.add_argument('--tags', type=str, help='Comma-separated recently explored tags')
    parser.add_argument('--hours', type=float, help='Reading time budget in hours')

    parser.add_argument('--catalog', type=str, help='JSON catalog file')
    parser.add_argument('--ratings', type=str, help='JSON rating matrix file')

    source = parser.add_mutually_exclusive_group()
    source.add_argument('--google', type=str, help='Google Books query to add to the catalog')
    source.add_argument('--mood', type=str, help='Mood to discover books for on Google Books')
    parser.add_argument('--genre-filter', type=str, default=None,
                        help='Genre used to refine --mood discovery')

    parser.add_argument(
        '-n', '--num',
        type=int,
        default=NUM_RECOMMENDATIONS,
        help=f'Number of recommendations to generate (default: {NUM_RECOMMENDATIONS})'
    )
    parser.add_argument('--reason-for', type=str, help='Only print the reasons for this book id')

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file path (default: print to stdout)'
    )
    parser.add_argument(
        '--format',
        type=str,
        choices=['json', 'csv', 'simple'],
        default='json',
        help='Output format (default: json)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--no-cache',
        action='store_true',
        help='Disable API response caching'
    )

    return parser


def build_profile(args: argparse.Namespace) -> UserProfile:
    """Profile from --profile, overridden by the individual flags."""
    if args.profile:
        profile = load_profile(args.profile)
    elif args.user:
        profile = UserProfile(user_id=args.user)
    else:
        raise ValidationError("Either --user or --profile is required")

    if args.user:
        profile.user_id = args.user
    if args.name is not None:
        profile.name = args.name
    if args.genres is not None:
        profile.update_preferences(favorite_genres=_split(args.genres))
    if args.tags is not None:
        profile.history_tags = _split(args.tags)[-HISTORY_TAG_LIMIT:]
    if args.hours is not None:
        profile.update_preferences(time_budget_hours=args.hours)
    return profile


def build_engine(args: argparse.Namespace) -> RecommendationEngine:
    catalog = load_catalog(args.catalog) if args.catalog else list(SAMPLE_BOOKS)
    ratings = load_ratings(args.ratings) if args.ratings else sample_ratings()
    engine = RecommendationEngine(catalog, ratings)

    if args.google or args.mood:
        client = GoogleBooksClient(use_cache=not args.no_cache)
        if args.google:
            external = client.fetch_books(args.google)
        else:
            external = client.discover(mood=args.mood, genre=args.genre_filter)
        engine.extend_catalog(external)

    return engine


def format_output(result: RecommendationOutput, fmt: str) -> str:
    """Format recommendation output based on requested format."""
    if fmt == 'json':
        return result.to_json(indent=2)

    elif fmt == 'csv':
        lines = ['book_id,title,author,score,reasons']
        for rec in result.recommendations:
            book_id = rec.book_id.replace('"', '""')
            title = rec.title.replace('"', '""')
            author = rec.author.replace('"', '""')
            reasons = ' | '.join(rec.reasons).replace('"', '""')
            lines.append(
                f'"{book_id}","{title}","{author}",{rec.score:.4f},"{reasons}"'
            )
        return '\n'.join(lines)

    elif fmt == 'simple':
        lines = [
            f"Recommendations for: {result.user_name or result.user_id}",
            f"   Catalog size: {result.catalog_size}",
            "",
            "Top {0} Recommendations:".format(len(result.recommendations)),
            "-" * 50,
        ]
        for i, rec in enumerate(result.recommendations, 1):
            lines.append(f"{i:2}. {rec.title}")
            lines.append(f"    Author: {rec.author}")
            lines.append(f"    Score: {rec.score:.4f}")
            lines.append(f"    Why: {rec.explanation}")
            lines.append(f"    Book ID: {rec.book_id}")
            lines.append("")
        return '\n'.join(lines)

    return result.to_json()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    if args.num < 1:
        parser.error("--num must be a positive integer")

    try:
        profile = build_profile(args)
        engine = build_engine(args)

        if args.reason_for:
            output = json.dumps(engine.explain(profile, args.reason_for), indent=2)
        else:
            result = engine.recommend(profile, n_recommendations=args.num)
            output = format_output(result, args.format)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
            logger.info("Recommendations saved to: %s", args.output)
        else:
            print(output)

        return 0

    except (ValidationError, BooksAPIError, OSError, KeyError) as e:
        logger.debug("Command failed", exc_info=args.verbose)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
