# AI INSTRUCTION:
# Two entry points over the same search collaborator:
#  - preflight(): before the loop, for prompts that need live info; echoes the query as a <SEARCH> tag
#  - follow_up(): for a <SEARCH> tag the model emitted; rewrites the active prompt
# Zero results is a normal outcome and is spelled out to the model.

from __future__ import annotations
import logging
from typing import List, Optional

from bubble.generate.cancel import CancellationToken
from bubble.generate.types import ChunkSink

from .client import SearchClient
from .intent import needs_live_info
from .prompts import aggregated_context, no_results_context, no_results_prompt, results_block, synthesis_prompt
from .types import FollowUp, Preflight, SearchResult

logger = logging.getLogger(__name__)


class SearchAugmenter:
    def __init__(self, client: Optional[SearchClient], result_count: int = 15):
        self.client = client
        self.result_count = result_count

    @property
    def available(self) -> bool:
        return self.client is not None

    def _search(self, query: str, token: CancellationToken) -> List[SearchResult]:
        token.raise_if_cancelled()
        try:
            results = list(self.client.search(query, self.result_count))
        except Exception:
            logger.warning("Web search failed for %r; continuing without results", query, exc_info=True)
            return []
        logger.info("Web search %r returned %d results", query, len(results))
        return results

    def preflight(
        self,
        prompt: str,
        supports_search: bool,
        token: CancellationToken,
        on_chunk: Optional[ChunkSink] = None,
    ) -> Optional[Preflight]:
        if not self.available or not needs_live_info(prompt, supports_search):
            return None
        echo = f"<SEARCH>{prompt}</SEARCH>"
        if on_chunk:
            on_chunk(echo)
        results = self._search(prompt, token)
        return Preflight(query=prompt, echo_tag=echo, context=results_block(prompt, results), results=results)

    def wants(self, query: str) -> bool:
        return self.available and needs_live_info(query, True, follow_up=True)

    def follow_up(self, query: str, original_prompt: str, token: CancellationToken) -> FollowUp:
        results = self._search(query, token)
        if results:
            context = aggregated_context(results)
            return FollowUp(query=query, prompt=synthesis_prompt(original_prompt, query, context), fallback_context=context, results=results)
        return FollowUp(
            query=query,
            prompt=no_results_prompt(original_prompt, query),
            fallback_context=no_results_context(query),
            results=[],
        )
