# Makes the folder importable as a package.
# Exports the search client, augmenter and result types for convenience.

from .augment import SearchAugmenter
from .client import SearchClient, WebSearchClient
from .intent import needs_live_info
from .types import FollowUp, Preflight, SearchResult

__all__ = ["SearchAugmenter", "SearchClient", "WebSearchClient", "needs_live_info", "FollowUp", "Preflight", "SearchResult"]
