"""
Job suggestion service.

Runs: resume → profile → derived searches → ranked suggestions, or
free text → query profile → ranked suggestions.
One instance is shared across requests; it holds only the pooled clients.
"""
from __future__ import annotations

import re
from typing import Any

from jobsuggest.cancel import CancelToken
from jobsuggest.config import Settings, load_settings
from jobsuggest.engine import SuggestionEngine
from jobsuggest.inference import InferenceClient
from jobsuggest.log import get_logger
from jobsuggest.models import CandidateProfile, RawDocument, ScoredSuggestion, SearchFilters
from jobsuggest.profile_builder import ProfileBuilder
from jobsuggest.sources import get_source

log = get_logger(__name__)

_QUERY_WORD_RE = re.compile(r"[a-z0-9+#.]{3,}")


def query_profile(text: str) -> CandidateProfile:
    """A profile built from a free-text search instead of a resume."""
    cleaned = " ".join(text.split())
    words = frozenset(w.strip(".") for w in _QUERY_WORD_RE.findall(cleaned.lower()))
    return CandidateProfile(
        skills=frozenset(w for w in words if w),
        role_keywords=(cleaned,) if cleaned else (),
        raw_text=cleaned,
    )


class JobSuggestionService:
    def __init__(self, builder: ProfileBuilder, engine: SuggestionEngine) -> None:
        self.builder = builder
        self.engine = engine

    def build_profile(self, doc: RawDocument, cancel: CancelToken | None = None) -> CandidateProfile:
        log.info("Building profile from %s (%d bytes)", doc.filename or doc.media_type, len(doc.content))
        return self.builder.build_profile(doc, cancel)

    def suggest_from_resume(
        self,
        doc: RawDocument,
        limit: int = 10,
        filters: SearchFilters | None = None,
        cancel: CancelToken | None = None,
    ) -> tuple[CandidateProfile, list[ScoredSuggestion]]:
        cancel = cancel or CancelToken()
        profile = self.build_profile(doc, cancel)
        return profile, self.engine.suggest(profile, limit, filters, cancel)

    def suggest_for_query(
        self,
        text: str,
        filters: SearchFilters | None = None,
        limit: int = 10,
        cancel: CancelToken | None = None,
    ) -> list[ScoredSuggestion]:
        log.info("Ad-hoc search for %r", text)
        return self.engine.suggest(query_profile(text), limit, filters, cancel)


def build_service(settings: Settings | None = None) -> JobSuggestionService:
    settings = settings or load_settings()
    client = InferenceClient(settings.inference)
    return JobSuggestionService(
        builder=ProfileBuilder(client),
        engine=SuggestionEngine(get_source(settings.search), settings.engine),
    )


def suggestion_to_dict(s: ScoredSuggestion) -> dict[str, Any]:
    p = s.posting
    return {
        "id": p.identity,
        "title": p.title,
        "company": p.company,
        "location": p.location,
        "url": p.url,
        "posted_at": p.posted_at.isoformat() if p.posted_at else None,
        "score": s.score,
        "matched_skills": sorted(s.matched_skills),
        "role_match": s.role_match,
        "reasons": list(s.reasons),
    }


def profile_to_dict(profile: CandidateProfile) -> dict[str, Any]:
    return {
        "skills": sorted(profile.skills),
        "role_keywords": list(profile.role_keywords),
        "seniority": profile.seniority,
        "failed_tasks": list(profile.failed_tasks),
        "text_chars": len(profile.raw_text),
    }
