"""Turn an uploaded resume into a candidate profile.

Runs: extract text → skill extraction ∥ role classification → profile.
The two inference calls are independent; one of them failing still yields
a (partial) profile, both failing is fatal.
"""
from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor

from jobsuggest.cancel import CancelToken
from jobsuggest.config import InferenceConfig
from jobsuggest.errors import EmptyResume, InferenceError, ProfileBuildFailed
from jobsuggest.extractor import extract_text
from jobsuggest.inference import InferenceClient
from jobsuggest.log import get_logger
from jobsuggest.models import CandidateProfile, InferencePrediction, RawDocument, TaskKind

log = get_logger(__name__)

_YEARS_RE = re.compile(r"\b(\d{1,2})\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)


def detect_seniority(text: str) -> str | None:
    """junior (<3 yrs), intermediate (3-6 yrs), senior (7+ yrs); None without a hint."""
    years = max((int(m.group(1)) for m in _YEARS_RE.finditer(text)), default=None)
    if years is None:
        return None
    if years >= 7:
        return "senior"
    if years >= 3:
        return "intermediate"
    return "junior"


class ProfileBuilder:
    def __init__(self, client: InferenceClient, config: InferenceConfig | None = None) -> None:
        self.client = client
        self.config = config or client.config

    def build_profile(self, doc: RawDocument, cancel: CancelToken | None = None) -> CandidateProfile:
        cancel = cancel or CancelToken()
        text = extract_text(doc)
        if not text.strip():
            raise EmptyResume()
        cancel.raise_if_cancelled()
        return self.profile_from_text(text, cancel)

    def profile_from_text(self, text: str, cancel: CancelToken | None = None) -> CandidateProfile:
        cancel = cancel or CancelToken()
        tasks = (TaskKind.SKILLS, TaskKind.ROLES)
        results: dict[TaskKind, InferencePrediction] = {}
        errors: dict[str, InferenceError] = {}

        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="inference") as pool:
            futures = {task: pool.submit(self.client.predict, text, task, cancel) for task in tasks}
            try:
                for task, future in futures.items():
                    try:
                        results[task] = future.result()
                    except InferenceError as exc:
                        log.warning("Inference task %s failed: %s", task.value, exc)
                        errors[task.value] = exc
            except BaseException:
                cancel.cancel()
                raise

        if len(errors) == len(tasks):
            raise ProfileBuildFailed(errors)

        ranked_skills: tuple[str, ...] = ()
        if TaskKind.SKILLS in results:
            ranked_skills = tuple(results[TaskKind.SKILLS].above(self.config.skill_threshold))
        roles: tuple[str, ...] = ()
        if TaskKind.ROLES in results:
            roles = tuple(results[TaskKind.ROLES].above(self.config.role_threshold)[: self.config.max_roles])

        profile = CandidateProfile(
            skills=frozenset(ranked_skills),
            role_keywords=roles,
            raw_text=text,
            seniority=detect_seniority(text),
            failed_tasks=tuple(sorted(errors)),
            ranked_skills=ranked_skills,
        )
        log.info(
            "Profile built — skills=%d, roles=%s, seniority=%s, failed=%s",
            len(profile.skills), list(profile.role_keywords), profile.seniority,
            list(profile.failed_tasks) or "none",
        )
        return profile
