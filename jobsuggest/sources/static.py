"""Offline job source serving a fixed posting list (demo runs and tests)."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable

from jobsuggest.cancel import CancelToken
from jobsuggest.log import get_logger
from jobsuggest.models import JobPosting, SearchFilters, SearchQuery
from jobsuggest.sources.base import JobSearchClient, Page

log = get_logger(__name__)

_WORD_RE = re.compile(r"[a-z0-9+#.]+")

SAMPLE_POSTINGS: tuple[JobPosting, ...] = (
    JobPosting(
        id="1",
        title="Data Analyst",
        company="Northwind Retail",
        location="London",
        url="https://example.com/job/1",
        description="Build dashboards in Tableau and write SQL against the sales warehouse.",
        posted_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
        source="static",
    ),
    JobPosting(
        id="2",
        title="Senior Python Developer",
        company="CloudScale SaaS",
        location="Remote",
        url="https://example.com/job/2",
        description="Python, Docker and Kubernetes for a distributed billing platform.",
        posted_at=datetime(2026, 9, 28, tzinfo=timezone.utc),
        source="static",
    ),
    JobPosting(
        id="3",
        title="DevOps Engineer",
        company="Enterprise Platform Inc",
        location="Manchester",
        url="https://example.com/job/3",
        description="Terraform, AWS and CI/CD pipelines; on-call rotation.",
        posted_at=datetime(2026, 9, 20, tzinfo=timezone.utc),
        source="static",
    ),
    JobPosting(
        id="4",
        title="Warehouse Clerk",
        company="Fast Freight",
        location="Leeds",
        url="https://example.com/job/4",
        description="Pick, pack and dispatch orders. Forklift licence preferred.",
        posted_at=datetime(2026, 10, 2, tzinfo=timezone.utc),
        source="static",
    ),
)


def _words(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


class StaticJobSource(JobSearchClient):
    name = "static"

    def __init__(self, postings: Iterable[JobPosting] = SAMPLE_POSTINGS, page_size: int = 20) -> None:
        self.postings = tuple(postings)
        self.page_size = page_size

    def fetch_page(
        self,
        query: SearchQuery,
        filters: SearchFilters,
        page: int,
        cancel: CancelToken | None = None,
    ) -> Page:
        wanted = set().union(*(_words(kw) for kw in query.keywords)) if query.keywords else set()
        hits = [
            p for p in self.postings
            if (not wanted or wanted & _words(f"{p.title} {p.description}"))
            and (not filters.location or filters.location.lower() in p.location.lower())
        ]
        start = (page - 1) * self.page_size
        chunk = hits[start:start + self.page_size]
        return Page(postings=chunk, has_more=start + self.page_size < len(hits))
