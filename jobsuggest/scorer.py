"""Score and rank job postings against a candidate profile.

Scoring hierarchy:
  - Role keyword in posting TITLE (whole phrase or >= 60% word overlap) → 0.40
  - Role keyword word (4+ chars) found inside the title                 → 0.15
  - Each profile skill in the title                                     → 0.10
  - Each profile skill in the description only                          → 0.06
    (skill contribution capped at 0.60)
  - Title clearly above the candidate's seniority                        → × 0.5

Postings scoring 0 carry no signal and are dropped.
"""
from __future__ import annotations

import html
import re
from typing import Iterable, Sequence

from jobsuggest.log import get_logger
from jobsuggest.models import CandidateProfile, JobPosting, ScoredSuggestion

log = get_logger(__name__)

TITLE_MATCH_BOOST = 0.40
PARTIAL_TITLE_BOOST = 0.15
SKILL_IN_TITLE = 0.10
SKILL_IN_DESCRIPTION = 0.06
SKILL_CAP = 0.60
OVER_LEVEL_PENALTY = 0.5

# Role words shorter than this ("qa", "ux") are too generic for a partial hit.
_MIN_PARTIAL_WORD_LEN = 4

# Titles that signal a level well above "senior" individual contributor
OVER_LEVEL_TITLES: list[str] = [
    "director", "vice president", "vp", "chief", "head of", "cto", "cfo",
    "coo", "ceo", "managing director", "general manager", "avp",
]

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[^\w\s+#./-]")


def _normalize(s: str) -> str:
    text = _TAG_RE.sub(" ", html.unescape(s or ""))
    text = _PUNCT_RE.sub(" ", text.lower())
    return _WS_RE.sub(" ", text).strip()


def _contains_phrase(phrase: str, text: str) -> bool:
    """Whole-word/phrase containment; tolerates symbols like ``c#`` and ``node.js``."""
    if not phrase:
        return False
    pattern = r"(?<![a-z0-9])" + re.escape(phrase) + r"(?![a-z0-9])"
    return re.search(pattern, text) is not None


def _word_overlap_ratio(role: str, text: str) -> float:
    """Fraction of words in *role* that appear in *text*.

    Requires at least 2 overlapping words to be non-zero, preventing
    single-word false positives like "engineer" matching everything.
    """
    role_words = set(role.split())
    text_words = set(text.split())
    overlap = role_words & text_words
    if not role_words or (len(overlap) < 2 and len(role_words) > 1):
        return 0.0
    return len(overlap) / len(role_words)


def role_boost(title: str, role_keywords: Sequence[str]) -> tuple[float, str | None]:
    """Best title boost over *role_keywords*; earlier keywords win ties."""
    title_norm = _normalize(title)
    best_score, best_role = 0.0, None
    for role_raw in role_keywords:
        role = _normalize(role_raw)
        if not role:
            continue
        if _contains_phrase(role, title_norm) or _word_overlap_ratio(role, title_norm) >= 0.6:
            score = TITLE_MATCH_BOOST
        elif any(len(w) >= _MIN_PARTIAL_WORD_LEN and w in title_norm for w in role.split()):
            score = PARTIAL_TITLE_BOOST
        else:
            continue
        if score > best_score:
            best_score, best_role = score, role_raw
        if best_score == TITLE_MATCH_BOOST:
            break
    return best_score, best_role


def match_skills(posting: JobPosting, skills: Iterable[str]) -> tuple[frozenset[str], float]:
    """Return the matched skills and their capped, weighted contribution."""
    title_norm = _normalize(posting.title)
    desc_norm = _normalize(posting.description)
    matched: set[str] = set()
    total = 0.0
    for skill in sorted(skills):
        needle = _normalize(skill)
        if _contains_phrase(needle, title_norm):
            total += SKILL_IN_TITLE
        elif _contains_phrase(needle, desc_norm):
            total += SKILL_IN_DESCRIPTION
        else:
            continue
        matched.add(skill)
    return frozenset(matched), min(total, SKILL_CAP)


def is_over_level(title: str, seniority: str | None) -> bool:
    """Return True if the job title implies a level clearly above the profile."""
    if seniority not in ("junior", "intermediate", "senior"):
        return False
    t = _normalize(title)
    return any(_contains_phrase(tag, t) for tag in OVER_LEVEL_TITLES)


def score_posting(posting: JobPosting, profile: CandidateProfile) -> ScoredSuggestion:
    reasons: list[str] = []

    boost, matched_role = role_boost(posting.title, profile.role_keywords)
    if matched_role:
        kind = "title" if boost == TITLE_MATCH_BOOST else "partial title"
        reasons.append(f"Role match ({kind}): {matched_role}")

    matched, skill_score = match_skills(posting, profile.skills)
    for s in sorted(matched)[:5]:
        reasons.append(f"Skill: {s}")

    score = boost + skill_score
    if score and is_over_level(posting.title, profile.seniority):
        score *= OVER_LEVEL_PENALTY
        reasons.append("Seniority above profile level")

    return ScoredSuggestion(
        posting=posting,
        score=round(min(score, 1.0), 4),
        matched_skills=matched,
        role_match=matched_role,
        reasons=tuple(reasons),
    )


def _sort_key(item: tuple[int, ScoredSuggestion]) -> tuple:
    index, s = item
    posted = s.posting.posted_at
    recency = -posted.timestamp() if posted is not None else 0.0
    return (-s.score, posted is None, recency, index)


def rank(
    postings: Sequence[JobPosting],
    profile: CandidateProfile,
    limit: int,
    min_score: float = 0.0,
) -> list[ScoredSuggestion]:
    """Score *postings* (given in first-seen order) and return the best *limit*.

    Ties on score go to the more recent posting, then to the earlier one.
    """
    if limit <= 0:
        return []
    scored = [score_posting(p, profile) for p in postings]
    kept = [(i, s) for i, s in enumerate(scored) if s.score > 0 and s.score >= min_score]
    kept.sort(key=_sort_key)
    result = [s for _, s in kept[:limit]]
    log.info("Scored %d postings → %d kept, returning %d", len(postings), len(kept), len(result))
    return result
