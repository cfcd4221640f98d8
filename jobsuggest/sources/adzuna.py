"""Adzuna job search: aggregator with app-id / app-key authentication.

Free tier: 250 requests/day.  Sign up at https://developer.adzuna.com/
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

import requests

from jobsuggest.cancel import CancelToken
from jobsuggest.config import JobSearchConfig, make_session
from jobsuggest.errors import SearchRejected, SearchUnavailable
from jobsuggest.log import get_logger
from jobsuggest.models import JobPosting, SearchFilters, SearchQuery
from jobsuggest.sources.base import JobSearchClient, Page

log = get_logger(__name__)


def _parse_created(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.debug("Unparseable Adzuna date %r", value)
        return None


def to_posting(hit: dict[str, Any]) -> JobPosting:
    return JobPosting(
        id=str(hit.get("id") or ""),
        title=hit.get("title") or "",
        company=(hit.get("company") or {}).get("display_name", ""),
        location=(hit.get("location") or {}).get("display_name", ""),
        url=hit.get("redirect_url") or "",
        description=hit.get("description") or "",
        posted_at=_parse_created(hit.get("created")),
        source="adzuna",
    )


class AdzunaSource(JobSearchClient):
    name = "adzuna"

    def __init__(self, config: JobSearchConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or make_session()

    def _params(self, query: SearchQuery, filters: SearchFilters) -> dict[str, Any]:
        params: dict[str, Any] = {
            "app_id": self.config.app_id,
            "app_key": self.config.app_key,
            "results_per_page": self.config.results_per_page,
            "content-type": "application/json",
        }
        if len(query.keywords) == 1:
            params["what"] = query.keywords[0]
        else:
            words = [w for kw in query.keywords for w in kw.split()]
            params["what_or"] = " ".join(dict.fromkeys(words))
        if filters.location:
            params["where"] = filters.location
        if filters.distance_km is not None:
            params["distance"] = filters.distance_km
        if filters.category:
            params["category"] = filters.category
        if filters.max_days_old is not None:
            params["max_days_old"] = filters.max_days_old
        return params

    def fetch_page(
        self,
        query: SearchQuery,
        filters: SearchFilters,
        page: int,
        cancel: CancelToken | None = None,
    ) -> Page:
        cancel = cancel or CancelToken()
        return self.config.retry.call(self._fetch, query, filters, page, cancel, cancel=cancel)

    def _fetch(self, query: SearchQuery, filters: SearchFilters, page: int, cancel: CancelToken) -> Page:
        url = f"{self.config.base_url}/{self.config.country}/search/{page}"
        try:
            r = self.session.get(
                url,
                params=self._params(query, filters),
                timeout=self.config.timeout_seconds,
                stream=True,
            )
        except requests.RequestException as exc:
            cancel.raise_if_cancelled()
            raise SearchUnavailable(f"Adzuna unreachable: {exc}") from exc

        unregister = cancel.on_cancel(r.close)
        try:
            if r.status_code >= 500:
                raise SearchUnavailable(f"Adzuna returned HTTP {r.status_code}")
            if r.status_code >= 400:
                raise SearchRejected(f"Adzuna rejected the query (HTTP {r.status_code})")
            data = r.json()
        except ValueError as exc:
            cancel.raise_if_cancelled()
            raise SearchUnavailable("Adzuna returned a non-JSON page") from exc
        except requests.RequestException as exc:
            cancel.raise_if_cancelled()
            raise SearchUnavailable(f"Adzuna page interrupted: {exc}") from exc
        finally:
            unregister()
            r.close()
        cancel.raise_if_cancelled()
        if not isinstance(data, dict):
            raise SearchUnavailable("Adzuna returned an unexpected page shape")

        hits = data.get("results") or []
        postings = [to_posting(hit) for hit in hits if isinstance(hit, dict)]
        total = int(data.get("count") or 0)
        has_more = bool(hits) and page * self.config.results_per_page < total
        return Page(postings=postings, has_more=has_more)
