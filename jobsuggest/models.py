"""Data models for resumes, candidate profiles, postings and suggestions."""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT = "text/plain"


@dataclass(frozen=True)
class RawDocument:
    content: bytes
    media_type: str = PDF
    filename: str = ""


class TaskKind(str, enum.Enum):
    """Which behaviour the inference service is asked for."""

    SKILLS = "skills"
    ROLES = "roles"


@dataclass(frozen=True)
class InferencePrediction:
    """Labels with confidence in [0, 1], best first.

    The label vocabulary is whatever the remote model returns.
    """

    labels: tuple[tuple[str, float], ...] = ()

    @classmethod
    def from_scores(cls, scores: dict[str, float]) -> "InferencePrediction":
        ordered = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
        return cls(labels=tuple(ordered))

    def as_dict(self) -> dict[str, float]:
        return dict(self.labels)

    def above(self, threshold: float) -> list[str]:
        return [label for label, score in self.labels if score >= threshold]

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class CandidateProfile:
    skills: frozenset[str]
    role_keywords: tuple[str, ...]
    raw_text: str
    seniority: Optional[str] = None
    failed_tasks: tuple[str, ...] = ()
    # Same labels as skills, highest confidence first; empty when unranked.
    ranked_skills: tuple[str, ...] = ()

    @property
    def is_usable(self) -> bool:
        return bool(self.skills or self.role_keywords)


@dataclass(frozen=True)
class SearchFilters:
    location: str = ""
    distance_km: Optional[int] = None
    category: str = ""
    max_days_old: Optional[int] = None


@dataclass(frozen=True)
class SearchQuery:
    """Keywords are ordered most relevant first."""

    keywords: tuple[str, ...]
    label: str = ""


_WS_RE = re.compile(r"\s+")


def _norm(s: str) -> str:
    return _WS_RE.sub(" ", (s or "").lower()).strip()


@dataclass(frozen=True)
class JobPosting:
    id: str
    title: str
    company: str
    location: str
    url: str
    description: str
    posted_at: Optional[datetime] = None
    source: str = "unknown"

    @property
    def identity(self) -> str:
        """Dedup key: ``source:id`` or, without an id, normalized title|company|location."""
        if self.id:
            return f"{self.source}:{self.id}"
        return "|".join((_norm(self.title), _norm(self.company), _norm(self.location)))


@dataclass(frozen=True)
class ScoredSuggestion:
    posting: JobPosting
    score: float
    matched_skills: frozenset[str]
    role_match: Optional[str] = None
    reasons: tuple[str, ...] = field(default_factory=tuple)
