"""
Entry point for running the review engine CLI as a module.

Usage:
    python -m review_engine.delivery queue snapshot.json
    python -m review_engine.delivery schedule 5 5 4 1 5
    python -m review_engine.delivery --help
"""
from .cli import main

if __name__ == "__main__":
    main()
