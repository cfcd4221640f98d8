"""Client for the remote text-inference service (Hugging Face Inference API).

Both tasks run as zero-shot classification: the résumé text is scored
against a label vocabulary (skills or role titles) configured per task.
"""
from __future__ import annotations

import json
import re
import time
from typing import Any, Iterable

import requests

from jobsuggest.cancel import CancelToken
from jobsuggest.config import InferenceConfig, make_session
from jobsuggest.errors import (
    InferenceBadResponse,
    InferenceTimeout,
    InferenceUnavailable,
)
from jobsuggest.log import get_logger
from jobsuggest.models import InferencePrediction, TaskKind

log = get_logger(__name__)

# The hosted zero-shot pipeline scores at most this many labels per request.
LABELS_PER_REQUEST = 10
_UNAVAILABLE_STATUSES = {401, 403, 429}
_WS_RE = re.compile(r"\s+")


def truncate(text: str, max_chars: int) -> str:
    """Collapse whitespace and keep the first *max_chars* characters.

    Cuts at a word boundary when one is close to the limit.
    """
    flat = _WS_RE.sub(" ", text or "").strip()
    if len(flat) <= max_chars:
        return flat
    cut = flat[:max_chars]
    boundary = cut.rfind(" ")
    if boundary >= int(max_chars * 0.8):
        cut = cut[:boundary]
    return cut


def _batches(labels: Iterable[str], size: int) -> list[list[str]]:
    items = list(dict.fromkeys(labels))
    return [items[i:i + size] for i in range(0, len(items), size)]


def parse_prediction(payload: Any) -> dict[str, float]:
    """Turn any of the response shapes the service uses into ``{label: score}``.

    Accepts ``{"labels": [...], "scores": [...]}``, a list of
    ``{"label", "score"}`` items, token-classification items
    (``{"word", "score"}``), and any of these wrapped in a one-element list.
    """
    if isinstance(payload, dict) and "error" in payload:
        raise InferenceBadResponse(f"Inference service error: {payload['error']}")
    if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], (list, dict)):
        inner = payload[0]
        if isinstance(inner, list) or "labels" in inner:
            return parse_prediction(inner)

    scores: dict[str, float] = {}
    if isinstance(payload, dict) and "labels" in payload and "scores" in payload:
        labels, values = payload["labels"], payload["scores"]
        if not isinstance(labels, list) or not isinstance(values, list) or len(labels) != len(values):
            raise InferenceBadResponse("labels and scores do not line up")
        pairs = zip(labels, values)
    elif isinstance(payload, list):
        pairs = []
        for item in payload:
            if not isinstance(item, dict):
                raise InferenceBadResponse(f"Unexpected prediction item: {item!r:.80}")
            label = item.get("label") or item.get("word") or item.get("entity_group")
            pairs.append((label, item.get("score")))
    else:
        raise InferenceBadResponse(f"Unexpected response shape: {type(payload).__name__}")

    for label, score in pairs:
        if not isinstance(label, str) or not label.strip():
            continue
        try:
            value = float(score)
        except (TypeError, ValueError) as exc:
            raise InferenceBadResponse(f"Non-numeric score for {label!r}") from exc
        value = min(max(value, 0.0), 1.0)
        key = label.strip().lower()
        scores[key] = max(value, scores.get(key, 0.0))
    return scores


class InferenceClient:
    def __init__(self, config: InferenceConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or make_session()

    def _model_for(self, task: TaskKind) -> tuple[str, tuple[str, ...]]:
        if task is TaskKind.SKILLS:
            return self.config.skill_model, self.config.skill_labels
        if task is TaskKind.ROLES:
            return self.config.role_model, self.config.role_labels
        raise ValueError(f"Unknown inference task: {task!r}")

    def predict(
        self,
        text: str,
        task: TaskKind,
        cancel: CancelToken | None = None,
    ) -> InferencePrediction:
        """Score *text* for *task*; all label batches share one deadline."""
        model, labels = self._model_for(task)
        inputs = truncate(text, self.config.max_input_chars)
        if not inputs:
            raise ValueError("predict() needs non-empty text")
        if len(inputs) < len(text.strip()):
            log.debug("Input truncated to %d chars for %s", len(inputs), task.value)

        deadline = time.monotonic() + self.config.timeout_seconds
        cancel = cancel or CancelToken()
        scores: dict[str, float] = {}
        for batch in _batches(labels, LABELS_PER_REQUEST):
            payload = {
                "inputs": inputs,
                "parameters": {"candidate_labels": batch, "multi_label": True},
            }
            result = self.config.retry.call(
                self._post, model, payload, deadline, cancel, cancel=cancel
            )
            for label, score in parse_prediction(result).items():
                scores[label] = max(score, scores.get(label, 0.0))

        if not scores:
            raise InferenceBadResponse(f"Empty prediction for task {task.value}")
        prediction = InferencePrediction.from_scores(scores)
        log.info("Inference %s → %d labels (top: %s)", task.value, len(prediction),
                 prediction.labels[0][0])
        return prediction

    def _post(self, model: str, payload: dict, deadline: float, cancel: CancelToken) -> Any:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise InferenceTimeout(
                f"No answer within {self.config.timeout_seconds:.0f}s from {model}"
            )
        url = f"{self.config.endpoint}/models/{model}"
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        try:
            r = self.session.post(url, json=payload, headers=headers, timeout=remaining, stream=True)
        except requests.Timeout as exc:
            raise InferenceTimeout(f"{model} timed out") from exc
        except requests.RequestException as exc:
            cancel.raise_if_cancelled()
            raise InferenceUnavailable(f"Cannot reach inference service: {exc}") from exc

        unregister = cancel.on_cancel(r.close)
        try:
            body = r.content
        except requests.RequestException as exc:
            cancel.raise_if_cancelled()
            raise InferenceTimeout(f"{model} response interrupted: {exc}") from exc
        except Exception as exc:
            cancel.raise_if_cancelled()
            raise InferenceBadResponse(f"{model} response interrupted: {exc}") from exc
        finally:
            unregister()
            r.close()
        cancel.raise_if_cancelled()

        if r.status_code in _UNAVAILABLE_STATUSES or r.status_code >= 500:
            raise InferenceUnavailable(f"Inference service returned HTTP {r.status_code}")
        if r.status_code >= 400:
            raise InferenceBadResponse(f"Inference request rejected with HTTP {r.status_code}")
        if not body:
            raise InferenceBadResponse("Empty response body")
        try:
            return json.loads(body)
        except ValueError as exc:
            raise InferenceBadResponse("Response is not valid JSON") from exc

