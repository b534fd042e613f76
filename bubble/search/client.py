# AI INSTRUCTION:
# HTTP client for the external web-search collaborator.
# Contract: search(query, limit) -> List[SearchResult], provider order preserved, no dedupe.

from __future__ import annotations
import os
from typing import List, Optional, Protocol

import requests

from .types import SearchResult

SEARCH_API_URL = os.getenv("SEARCH_API_URL", "http://localhost:8080/search")


class SearchClient(Protocol):
    def search(self, query: str, limit: int) -> List[SearchResult]:
        ...


class WebSearchClient:
    def __init__(self, url: str = SEARCH_API_URL, api_key: Optional[str] = None, timeout: float = 30):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def search(self, query: str, limit: int = 15) -> List[SearchResult]:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        resp = requests.post(self.url, json={"query": query, "limit": limit}, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        items = data.get("results", []) if isinstance(data, dict) else data
        return [
            SearchResult(
                title=it.get("title", ""),
                url=it.get("url", ""),
                content=it.get("content") or "",
                snippet=it.get("snippet") or "",
            )
            for it in items or []
        ]
