# AI INSTRUCTION:
# Provide reusable prompt fragments and templates specific to search.
# These are injected into the memory block or replace the active prompt after a <SEARCH> tag.

from typing import List

from .types import SearchResult


def results_block(query: str, results: List[SearchResult]) -> str:
    if not results:
        return f'[System: Search executed for "{query}" but returned no results. Rely on internal knowledge.]'
    items = "\n".join(
        f"\n--- RESULT {i} ---\nTitle: {r.title}\nURL: {r.url}\nContent: {r.body}\n"
        for i, r in enumerate(results, start=1)
    )
    return f'\n=== EXTERNAL WEB SEARCH RESULTS ===\nQuery: "{query}"\n{items}\n===================================\n'


def aggregated_context(results: List[SearchResult]) -> str:
    return "".join(f"{r.title}: {r.snippet or r.content}\n" for r in results)


def synthesis_prompt(original_prompt: str, query: str, context: str) -> str:
    return (
        f"USER ORIGINALLY ASKED: {original_prompt}\n\n"
        f"I have performed the following searches based on my previous thought process:\n- {query}\n\n"
        f"SEARCH CONTEXT:\n{context}\n\n"
        "INSTRUCTIONS: Synthesize a comprehensive answer to the user's original query using this search data. "
        "Cite sources using [1], [2] format. Do NOT repeat the <SEARCH> tags."
    )


def no_results_context(query: str) -> str:
    return f'[System: Search executed for "{query}" but returned no results. Continue with internal knowledge.]'


def no_results_prompt(original_prompt: str, query: str) -> str:
    return (
        f"USER ORIGINALLY ASKED: {original_prompt}\n\n"
        f'I attempted to search for: "{query}" but found no results.\n\n'
        "INSTRUCTIONS: Continue answering the user's request using your internal knowledge. "
        "Do NOT repeat the <SEARCH> tags."
    )
