"""
VibeSphere Recs - Hybrid Book Recommendation System
===================================================

A recommendation engine that ranks a book catalog per reader using
content-based and collaborative filtering, and explains every pick.

Modules:
    - config: Configuration and constants
    - models: Books, reader profiles and the rating matrix
    - scoring: Hybrid scoring engine
    - explainer: Reason generation
    - recommender: Main recommendation orchestrator
    - books_client: Google Books API wrapper
    - catalog: Sample data and file loaders
    - cli: Command-line interface
"""

__version__ = "1.0.0"
__author__ = "VibeSphere Team"
