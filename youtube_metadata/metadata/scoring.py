"""Tiered textual relevance scoring for search candidates."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from ..identifiers import cleanup_search_text
from .types import ScoredCandidate, SearchCandidate

EXACT_MATCH_SCORE = 10.0
CONTAINS_MATCH_SCORE = 8.0


def _tokenize(value: str) -> Set[str]:
    return {token for token in value.split(" ") if len(token) > 1}


def score_search_result(query: Optional[str], candidate: Optional[str]) -> float:
    """Score ``candidate`` against ``query`` on a 0-10 scale.

    Exact matches score 10 and containment of the query scores 8. Anything
    else scores the share of query tokens also present in the candidate.
    """
    normalized_query = cleanup_search_text(query).lower()
    normalized_candidate = cleanup_search_text(candidate).lower()
    if not normalized_query or not normalized_candidate:
        return 0.0

    if normalized_query == normalized_candidate:
        return EXACT_MATCH_SCORE
    if normalized_query in normalized_candidate:
        return CONTAINS_MATCH_SCORE

    query_tokens = _tokenize(normalized_query)
    candidate_tokens = _tokenize(normalized_candidate)
    if not query_tokens or not candidate_tokens:
        return 0.0
    return len(query_tokens & candidate_tokens) / len(query_tokens)


def rank_candidates(query: str, candidates: Iterable[SearchCandidate]) -> List[ScoredCandidate]:
    scored = [
        ScoredCandidate(candidate=candidate, score=score_search_result(query, candidate.title))
        for candidate in candidates
    ]
    scored.sort(key=lambda entry: entry.sort_key)
    return scored


__all__ = ["CONTAINS_MATCH_SCORE", "EXACT_MATCH_SCORE", "rank_candidates", "score_search_result"]
