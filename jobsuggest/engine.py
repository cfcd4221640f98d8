"""Job suggestion engine: derive queries, fetch in parallel, dedupe, rank."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from itertools import islice

from jobsuggest.cancel import CancelToken
from jobsuggest.config import EngineConfig
from jobsuggest.errors import InsufficientProfile, SearchError
from jobsuggest.log import get_logger
from jobsuggest.models import (
    CandidateProfile,
    JobPosting,
    ScoredSuggestion,
    SearchFilters,
    SearchQuery,
)
from jobsuggest.scorer import rank
from jobsuggest.sources.base import JobSearchClient

log = get_logger(__name__)


def derive_queries(profile: CandidateProfile, config: EngineConfig) -> list[SearchQuery]:
    """Primary query from the top role keywords, secondary from the most confident skills.

    Title-oriented and skill-oriented queries surface different postings;
    both are issued and merged.
    """
    queries: list[SearchQuery] = []
    roles = tuple(r for r in profile.role_keywords if r.strip())[: config.primary_role_count]
    if roles:
        queries.append(SearchQuery(keywords=roles, label="roles"))
    ordered = profile.ranked_skills or tuple(sorted(profile.skills))
    skills = tuple(s for s in ordered if s.strip())[: config.secondary_skill_count]
    if skills:
        queries.append(SearchQuery(keywords=skills, label="skills"))
    return queries


def dedupe(batches: list[list[JobPosting]]) -> list[JobPosting]:
    """Flatten *batches* in order, keeping the first posting per identity."""
    seen: set[str] = set()
    unique: list[JobPosting] = []
    for batch in batches:
        for posting in batch:
            key = posting.identity
            if key in seen:
                continue
            seen.add(key)
            unique.append(posting)
    return unique


class SuggestionEngine:
    def __init__(self, source: JobSearchClient, config: EngineConfig | None = None) -> None:
        self.source = source
        self.config = config or EngineConfig()

    def _fetch(self, query: SearchQuery, filters: SearchFilters, cancel: CancelToken) -> list[JobPosting]:
        postings = list(islice(self.source.search(query, filters, cancel), self.config.fetch_size_per_query))
        log.info("[%s] query %s returned %d postings", self.source.name, query.label, len(postings))
        return postings

    def fetch_candidates(
        self,
        queries: list[SearchQuery],
        filters: SearchFilters,
        cancel: CancelToken,
    ) -> list[JobPosting]:
        """Run *queries* in parallel; tolerate failures as long as one query succeeds."""
        batches: list[list[JobPosting]] = []
        failures: list[SearchError] = []
        with ThreadPoolExecutor(max_workers=len(queries), thread_name_prefix="search") as pool:
            futures = [pool.submit(self._fetch, q, filters, cancel) for q in queries]
            try:
                for query, future in zip(queries, futures):
                    try:
                        batches.append(future.result())
                    except SearchError as exc:
                        log.warning("Search query %s failed: %s", query.label, exc)
                        failures.append(exc)
            except BaseException:
                cancel.cancel()
                raise

        if failures and not batches:
            raise failures[0]
        unique = dedupe(batches)
        log.info("Fetched %d postings (%d unique) from %d/%d queries",
                 sum(map(len, batches)), len(unique), len(batches), len(queries))
        return unique

    def suggest(
        self,
        profile: CandidateProfile,
        limit: int,
        filters: SearchFilters | None = None,
        cancel: CancelToken | None = None,
    ) -> list[ScoredSuggestion]:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        queries = derive_queries(profile, self.config)
        if not queries:
            raise InsufficientProfile()
        if limit == 0:
            return []
        cancel = cancel or CancelToken()
        postings = self.fetch_candidates(queries, filters or SearchFilters(), cancel)
        cancel.raise_if_cancelled()
        if not postings:
            log.info("No postings found for %d queries", len(queries))
            return []
        return rank(postings, profile, limit, min_score=self.config.min_score)
