"""
Shared pytest fixtures and test doubles.

No test reaches the network: HTTP sessions are ``unittest.mock`` objects and
the inference/search collaborators are small in-memory stubs.
"""
from __future__ import annotations

import io
import json
import os
import threading
import zipfile
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

os.environ.setdefault("JOBSUGGEST_LOG_FILE", "0")

from jobsuggest.config import InferenceConfig, JobSearchConfig  # noqa: E402
from jobsuggest.errors import InferenceUnavailable, SearchUnavailable  # noqa: E402
from jobsuggest.models import InferencePrediction, JobPosting, TaskKind  # noqa: E402
from jobsuggest.retry import RetryPolicy  # noqa: E402
from jobsuggest.sources.base import JobSearchClient, Page  # noqa: E402


def make_pdf(*page_texts: str) -> bytes:
    """Build a minimal PDF with one Helvetica text line per page ('' = no text layer)."""
    n_pages = len(page_texts)
    page_ids = [4 + 2 * i for i in range(n_pages)]
    objects: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids [" + b" ".join(b"%d 0 R" % pid for pid in page_ids)
           + b"] /Count %d >>" % n_pages,
        3: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for pid, text in zip(page_ids, page_texts):
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1") if text else b""
        objects[pid] = (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % (pid + 1)
        )
        objects[pid + 1] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for num in sorted(objects):
        offsets[num] = out.tell()
        out.write(b"%d 0 obj\n" % num + objects[num] + b"\nendobj\n")
    xref_at = out.tell()
    size = max(objects) + 1
    out.write(b"xref\n0 %d\n" % size)
    out.write(b"0000000000 65535 f \n")
    for num in range(1, size):
        out.write(b"%010d 00000 n \n" % offsets[num])
    out.write(b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_at))
    return out.getvalue()


def make_docx(*paragraphs: str) -> bytes:
    ns = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    xml = f'<?xml version="1.0"?><w:document xmlns:w="{ns}"><w:body>{body}</w:body></w:document>'
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


def http_response(status: int = 200, body=None, raw: bytes | None = None) -> Mock:
    """A stand-in for ``requests.Response`` with ``content``/``json()``."""
    r = Mock()
    r.status_code = status
    if raw is None:
        raw = json.dumps(body).encode() if body is not None else b""
    r.content = raw

    def _json():
        return json.loads(raw)

    r.json = Mock(side_effect=_json)
    return r


class BlockingResponse:
    """A streamed 200 response whose body read hangs until ``close()`` is called."""

    status_code = 200

    def __init__(self, wait: float = 5.0) -> None:
        self.wait = wait
        self.closed = threading.Event()

    def _read(self):
        if self.closed.wait(self.wait):
            raise requests.ConnectionError("connection closed while reading body")
        raise AssertionError("body read was never interrupted")

    @property
    def content(self):
        return self._read()

    def json(self):
        return self._read()

    def close(self) -> None:
        self.closed.set()


def posting(pid: str, title: str, description: str = "", day: int | None = None,
            source: str = "stub", company: str = "Acme", location: str = "London") -> JobPosting:
    return JobPosting(
        id=pid,
        title=title,
        company=company,
        location=location,
        url=f"https://example.com/{pid}",
        description=description,
        posted_at=datetime(2026, 10, day, tzinfo=timezone.utc) if day else None,
        source=source,
    )


class StubInference:
    """Deterministic inference client; a task maps to scores or to an exception."""

    def __init__(self, config: InferenceConfig, outcomes: dict[TaskKind, object]) -> None:
        self.config = config
        self.outcomes = outcomes
        self.calls: list[TaskKind] = []

    def predict(self, text, task, cancel=None):
        self.calls.append(task)
        outcome = self.outcomes[task]
        if isinstance(outcome, BaseException):
            raise outcome
        return InferencePrediction.from_scores(outcome)


class StubSource(JobSearchClient):
    """Serves canned pages per query label; an exception value fails that query."""

    name = "stub"

    def __init__(self, by_label: dict[str, object], page_size: int = 50) -> None:
        self.by_label = by_label
        self.page_size = page_size
        self.pages_fetched: list[tuple[str, int]] = []

    def fetch_page(self, query, filters, page, cancel=None):
        self.pages_fetched.append((query.label, page))
        outcome = self.by_label.get(query.label, [])
        if isinstance(outcome, BaseException):
            raise outcome
        start = (page - 1) * self.page_size
        chunk = list(outcome[start:start + self.page_size])
        return Page(postings=chunk, has_more=start + self.page_size < len(outcome))


@pytest.fixture
def inference_config():
    return InferenceConfig(
        api_key="hf_test",
        endpoint="https://inference.test",
        skill_labels=("python", "sql", "excel"),
        role_labels=("data analyst", "data engineer"),
        retry=RetryPolicy(max_attempts=3, base_delay=0.0, jitter=False,
                          retryable=(InferenceUnavailable,)),
    )


@pytest.fixture
def search_config():
    return JobSearchConfig(
        app_id="id-1",
        app_key="key-1",
        country="gb",
        base_url="https://adzuna.test/v1/api/jobs",
        results_per_page=2,
        retry=RetryPolicy(max_attempts=3, base_delay=0.0, jitter=False,
                          retryable=(SearchUnavailable,)),
    )
