from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

from jobsuggest.cancel import CancelToken
from jobsuggest.log import get_logger
from jobsuggest.models import JobPosting, SearchFilters, SearchQuery

log = get_logger(__name__)


@dataclass(frozen=True)
class Page:
    postings: list[JobPosting]
    has_more: bool


class JobSearchClient(ABC):
    name: str = "unknown"

    @abstractmethod
    def fetch_page(
        self,
        query: SearchQuery,
        filters: SearchFilters,
        page: int,
        cancel: CancelToken | None = None,
    ) -> Page:
        """Fetch one 1-based results page."""

    def search(
        self,
        query: SearchQuery,
        filters: SearchFilters | None = None,
        cancel: CancelToken | None = None,
    ) -> Iterator[JobPosting]:
        """Yield postings lazily; the next page is requested only when needed."""
        filters = filters or SearchFilters()
        page = 1
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled()
            result = self.fetch_page(query, filters, page, cancel)
            log.debug("%s page %d for %r → %d postings", self.name, page, query.keywords, len(result.postings))
            yield from result.postings
            if not result.has_more or not result.postings:
                return
            page += 1
