"""AI-assisted candidate search."""

from .services import CandidateSearchService

__all__ = ["CandidateSearchService"]
