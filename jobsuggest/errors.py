"""Typed failures surfaced by the suggestion pipeline.

Each error carries a ``status_code`` hint so a thin HTTP or UI layer can map
it to a response without inspecting the message.
"""
from __future__ import annotations


class JobSuggestError(Exception):
    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)

    @property
    def message(self) -> str:
        return str(self)


class PipelineCancelled(JobSuggestError):
    """The request was cancelled before the pipeline finished."""

    status_code = 499


# ── Document extraction ──────────────────────────────────────────────────


class ExtractionFailed(JobSuggestError):
    """The document could not be read; upload a text-based PDF, DOCX or TXT file."""

    status_code = 422


class EmptyResume(JobSuggestError):
    """No text could be extracted from the resume (is it a scanned image?)."""

    status_code = 422


# ── Inference service ────────────────────────────────────────────────────


class InferenceError(JobSuggestError):
    status_code = 502


class InferenceTimeout(InferenceError):
    """The inference service did not answer in time."""

    status_code = 504


class InferenceBadResponse(InferenceError):
    """The inference service returned a malformed or empty response."""

    status_code = 502


class InferenceUnavailable(InferenceError):
    """The inference service refused the request (auth, rate limit or outage)."""

    status_code = 503


class ProfileBuildFailed(JobSuggestError):
    """Both skill extraction and role classification failed."""

    status_code = 502

    def __init__(self, errors: dict[str, InferenceError]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{task}: {exc}" for task, exc in sorted(self.errors.items()))
        super().__init__(f"Could not analyse the resume ({detail})")


# ── Job search service ───────────────────────────────────────────────────


class SearchError(JobSuggestError):
    status_code = 502


class SearchUnavailable(SearchError):
    """The job search service is unreachable or failing; try again later."""

    status_code = 503


class SearchRejected(SearchError):
    """The job search service rejected the query."""

    status_code = 400


class InsufficientProfile(JobSuggestError):
    """Cannot suggest jobs without resume content: no skills or roles were found."""

    status_code = 422
