"""Streamlit UI: upload a resume or type a query, get ranked job suggestions."""
from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobsuggest.config import get_env
from jobsuggest.errors import JobSuggestError
from jobsuggest.extractor import guess_media_type
from jobsuggest.log import get_logger
from jobsuggest.models import CandidateProfile, RawDocument, ScoredSuggestion, SearchFilters
from jobsuggest.service import JobSuggestionService, build_service

log = get_logger(__name__)

_CARD_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
[data-testid="stMetric"], [data-testid="stExpander"] {
    background: rgba(255,255,255,0.6);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.06);
}
h1, h2, h3 {
    color: #1a1a2e;
}
</style>
"""


@st.cache_resource
def _service() -> JobSuggestionService:
    """One service per process so HTTP connection pools are reused."""
    return build_service()


def _filters(prefix: str) -> SearchFilters:
    c1, c2 = st.columns(2)
    location = c1.text_input("Location", key=f"{prefix}_loc")
    distance = c2.number_input("Radius (km)", 0, 200, 0, key=f"{prefix}_dist")
    return SearchFilters(location=location.strip(), distance_km=int(distance) or None)


def _show_profile(profile: CandidateProfile) -> None:
    st.subheader("Extracted Profile")
    c1, c2, c3 = st.columns(3)
    c1.metric("Skills", len(profile.skills))
    c2.metric("Roles", len(profile.role_keywords))
    c3.metric("Seniority", profile.seniority or "—")
    if profile.skills:
        st.markdown("**Skills:** " + ", ".join(sorted(profile.skills)))
    if profile.role_keywords:
        st.markdown("**Best-fit roles:** " + ", ".join(profile.role_keywords))
    if profile.failed_tasks:
        st.warning("Partial analysis — failed: " + ", ".join(profile.failed_tasks))


def _show_suggestions(suggestions: list[ScoredSuggestion]) -> None:
    st.subheader(f"Suggestions ({len(suggestions)})")
    if not suggestions:
        st.info("No matching jobs found. Try a wider location or radius.")
        return
    for s in suggestions:
        p = s.posting
        with st.expander(f"{int(s.score * 100)}%  ·  {p.title} — {p.company}"):
            st.markdown(f"📍 {p.location or 'n/a'}  ·  [Open posting]({p.url})")
            if p.posted_at:
                st.caption(f"Posted {p.posted_at:%Y-%m-%d}")
            for reason in s.reasons:
                st.markdown(f"- {reason}")


def page_resume() -> None:
    st.header("Suggest from Resume")
    uploaded = st.file_uploader("Drop your resume here (PDF, DOCX, or TXT)", type=["pdf", "docx", "txt"])
    filters = _filters("resume")
    limit = st.slider("Max suggestions", 1, 50, 10)

    if uploaded and st.button("Find Jobs", type="primary", use_container_width=True):
        doc = RawDocument(
            content=uploaded.getvalue(),
            media_type=uploaded.type or guess_media_type(uploaded.name),
            filename=uploaded.name,
        )
        with st.spinner("Analyzing your resume…"):
            try:
                profile, suggestions = _service().suggest_from_resume(doc, limit, filters)
            except JobSuggestError as exc:
                log.warning("Resume suggestion failed: %s", exc)
                st.error(str(exc))
                return
        _show_profile(profile)
        st.divider()
        _show_suggestions(suggestions)


def page_search() -> None:
    st.header("Ad-hoc Search")
    text = st.text_input("Role or keywords", placeholder="e.g. data analyst")
    filters = _filters("search")
    limit = st.slider("Max results", 1, 50, 10, key="search_limit")

    if text.strip() and st.button("Search", type="primary", use_container_width=True):
        with st.spinner("Searching…"):
            try:
                suggestions = _service().suggest_for_query(text, filters, limit)
            except JobSuggestError as exc:
                log.warning("Ad-hoc search failed: %s", exc)
                st.error(str(exc))
                return
        _show_suggestions(suggestions)


def _sidebar_status() -> None:
    with st.sidebar:
        st.markdown("**Status**")
        for label, ok in (
            ("Inference key", bool(get_env("HF_API_KEY"))),
            ("Adzuna keys", bool(get_env("ADZUNA_APP_ID") and get_env("ADZUNA_APP_KEY"))),
        ):
            st.markdown(f"{'✅' if ok else '⬜'}  {label}")


def _wrap(page):
    def run() -> None:
        st.markdown(_CARD_CSS, unsafe_allow_html=True)
        _sidebar_status()
        page()

    run.__name__ = page.__name__
    return run


pages = [
    st.Page(_wrap(page_resume), title="Resume", icon="📄", url_path="resume", default=True),
    st.Page(_wrap(page_search), title="Search", icon="🔎", url_path="search"),
]

nav = st.navigation(pages)
nav.run()
