"""
Catalog matcher for AniForge.

Selects which entries of a provider's search results correspond to the
title being looked up. Matching is a strict waterfall: each stage relaxes
the previous one and only runs when every stricter stage found nothing.

    1. exact title, same start year and month
    2. exact title, same start year
    3. fuzzy title, same start year and month
    4. fuzzy title, same start year
    5. title-only (when the query has no start year): strict normalization
       of the raw query string, no date constraint, shortest title first
"""
import logging
from typing import Callable, List, Optional, Sequence

from models import CatalogCandidate, MatchResult, SearchQuery
from .similarity import similarity
from .titles import normalize_loose, normalize_strict

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.7

CandidateSource = Callable[[], List[CatalogCandidate]]


class CatalogMatcher:
    """
    Waterfall matcher shared by all anime providers.

    Args:
        threshold: Similarity score a fuzzy match must exceed
    """

    def __init__(self, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        self.threshold = threshold

    def match(
        self,
        query: SearchQuery,
        candidates: Sequence[CatalogCandidate],
        fallback: Optional[CandidateSource] = None,
    ) -> List[MatchResult]:
        """
        Match a query against catalog candidates.

        Args:
            query: The lookup being resolved
            candidates: Candidates returned by the provider search
            fallback: Optional loader for the candidates used by the
                title-only stage (defaults to ``candidates``)

        Returns:
            Matches ordered best-first; empty when nothing matches
        """
        if not candidates:
            return []

        pool = self._filter_dub(query, candidates)

        if query.start_year is None:
            title_pool = self._filter_dub(query, fallback()) if fallback else pool
            matched = self._match_title_only(query.query, title_pool)
            logger.debug(f"Title-only match for '{query.query}': {len(matched)} results")
            return [self._to_result(query, candidate) for candidate in matched]

        target_native = normalize_loose(query.media.romaji_title)
        target = normalize_loose(query.media.english_title) if query.media.english_title else target_native

        stages = [
            (self._exact, True),
            (self._exact, False),
            (self._fuzzy, True),
            (self._fuzzy, False),
        ]
        for stage, (title_check, with_month) in enumerate(stages, 1):
            matched = [
                candidate for candidate in pool
                if title_check(candidate, target, target_native)
                and self._same_start(query, candidate, with_month)
            ]
            if matched:
                logger.debug(f"Stage {stage} matched {len(matched)} candidates for '{query.query}'")
                return [self._to_result(query, candidate) for candidate in matched]

        logger.debug(f"No catalog match for '{query.query}'")
        return []

    @staticmethod
    def _filter_dub(query: SearchQuery, candidates: Sequence[CatalogCandidate]) -> List[CatalogCandidate]:
        if query.dub:
            return [candidate for candidate in candidates if candidate.supports_dub]
        return list(candidates)

    @staticmethod
    def _same_start(query: SearchQuery, candidate: CatalogCandidate, with_month: bool) -> bool:
        if candidate.start_year != query.start_year:
            return False
        return not with_month or candidate.start_month == query.start_month

    @staticmethod
    def _exact(candidate: CatalogCandidate, target: str, target_native: str) -> bool:
        return bool(
            (target and candidate.norm_title == target)
            or (target_native and candidate.norm_title_native == target_native)
        )

    def _fuzzy(self, candidate: CatalogCandidate, target: str, target_native: str) -> bool:
        return (
            self._close(candidate.norm_title, target)
            or self._close(candidate.norm_title_native, target_native)
        )

    def _close(self, a: str, b: str) -> bool:
        """Containment in either direction, or similarity above threshold."""
        if not a or not b:
            return False
        return a in b or b in a or similarity(a, b) > self.threshold

    def _match_title_only(self, raw_query: str, candidates: Sequence[CatalogCandidate]) -> List[CatalogCandidate]:
        target = normalize_strict(raw_query)
        matched = [
            candidate for candidate in candidates
            if self._close(normalize_strict(candidate.title), target)
            or self._close(normalize_strict(candidate.title_native), target)
        ]

        # Shortest, most literal title first
        matched.sort(key=lambda c: (len(normalize_strict(c.title)), normalize_strict(c.title)))
        return matched

    @staticmethod
    def _to_result(query: SearchQuery, candidate: CatalogCandidate) -> MatchResult:
        return MatchResult(
            id=f"{candidate.id}/{query.sub_or_dub}",
            title=candidate.title,
            url=candidate.url,
            sub_or_dub=query.sub_or_dub,
        )
