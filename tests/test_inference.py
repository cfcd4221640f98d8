"""Unit tests for the inference client."""
import threading
from dataclasses import replace
from unittest.mock import Mock

import pytest
import requests

from conftest import BlockingResponse, http_response
from jobsuggest.cancel import CancelToken
from jobsuggest.errors import (
    InferenceBadResponse,
    InferenceTimeout,
    InferenceUnavailable,
    PipelineCancelled,
)
from jobsuggest.inference import InferenceClient, parse_prediction, truncate
from jobsuggest.models import TaskKind


def zero_shot(labels, scores):
    return {"sequence": "…", "labels": labels, "scores": scores}


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(inference_config, session):
    return InferenceClient(inference_config, session=session)


class TestTruncate:
    def test_short_text_is_only_flattened(self):
        assert truncate("a  b\n\nc", 100) == "a b c"

    def test_keeps_the_beginning(self):
        text = "Senior data analyst. " + "filler " * 500
        out = truncate(text, 50)
        assert out.startswith("Senior data analyst.")
        assert len(out) <= 50

    def test_cuts_on_word_boundary(self):
        assert truncate("alpha beta gamma delta", 13) == "alpha beta"


class TestParsePrediction:
    def test_zero_shot_shape(self):
        assert parse_prediction(zero_shot(["SQL", "Excel"], [0.9, 0.2])) == {"sql": 0.9, "excel": 0.2}

    def test_label_score_list(self):
        payload = [{"label": "data analyst", "score": 0.7}, {"label": "clerk", "score": 0.1}]
        assert parse_prediction(payload) == {"data analyst": 0.7, "clerk": 0.1}

    def test_nested_list(self):
        assert parse_prediction([[{"label": "python", "score": 0.8}]]) == {"python": 0.8}

    def test_token_classification_keeps_best_score(self):
        payload = [
            {"entity_group": "SKILL", "word": "Python", "score": 0.6},
            {"entity_group": "SKILL", "word": "python", "score": 0.9},
        ]
        assert parse_prediction(payload) == {"python": 0.9}

    def test_scores_are_clamped(self):
        assert parse_prediction(zero_shot(["x"], [1.3])) == {"x": 1.0}

    @pytest.mark.parametrize(
        "payload",
        [
            {"error": "Model is loading"},
            {"labels": ["a", "b"], "scores": [0.1]},
            "plain string",
            [1, 2, 3],
            [{"label": "a", "score": "high"}],
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(InferenceBadResponse):
            parse_prediction(payload)


class TestPredict:
    def test_sends_bearer_token_and_task_labels(self, client, session):
        session.post.return_value = http_response(
            body=zero_shot(["sql", "python", "excel"], [0.95, 0.6, 0.1])
        )

        prediction = client.predict("I write SQL and Python.", TaskKind.SKILLS)

        assert prediction.labels == (("sql", 0.95), ("python", 0.6), ("excel", 0.1))
        args, kwargs = session.post.call_args
        assert args[0] == "https://inference.test/models/facebook/bart-large-mnli"
        assert kwargs["headers"]["Authorization"] == "Bearer hf_test"
        assert kwargs["json"]["inputs"] == "I write SQL and Python."
        assert kwargs["json"]["parameters"]["candidate_labels"] == ["python", "sql", "excel"]
        assert 0 < kwargs["timeout"] <= 60

    def test_role_task_uses_role_labels(self, client, session):
        session.post.return_value = http_response(body=zero_shot(["data analyst"], [0.8]))
        client.predict("text", TaskKind.ROLES)
        labels = session.post.call_args.kwargs["json"]["parameters"]["candidate_labels"]
        assert labels == ["data analyst", "data engineer"]

    def test_long_text_is_truncated_not_rejected(self, inference_config, session):
        client = InferenceClient(replace(inference_config, max_input_chars=20), session=session)
        session.post.return_value = http_response(body=zero_shot(["sql"], [0.9]))
        client.predict("Data analyst skilled in SQL and a lot more text", TaskKind.SKILLS)
        sent = session.post.call_args.kwargs["json"]["inputs"]
        assert len(sent) <= 20
        assert sent.startswith("Data analyst")

    def test_large_vocabularies_are_split_into_batches(self, inference_config, session):
        labels = tuple(f"skill{i}" for i in range(23))
        client = InferenceClient(replace(inference_config, skill_labels=labels), session=session)
        session.post.side_effect = [
            http_response(body=zero_shot(["skill0"], [0.4])),
            http_response(body=zero_shot(["skill10"], [0.9])),
            http_response(body=zero_shot(["skill20"], [0.5])),
        ]
        prediction = client.predict("text", TaskKind.SKILLS)
        assert session.post.call_count == 3
        assert [label for label, _ in prediction.labels] == ["skill10", "skill20", "skill0"]

    def test_rate_limit_is_retried(self, client, session):
        session.post.side_effect = [
            http_response(status=429, body={"error": "rate limited"}),
            http_response(body=zero_shot(["sql"], [0.9])),
        ]
        assert client.predict("text", TaskKind.SKILLS).as_dict() == {"sql": 0.9}
        assert session.post.call_count == 2

    def test_auth_failure_gives_up_after_bounded_attempts(self, client, session):
        session.post.return_value = http_response(status=401, body={"error": "bad token"})
        with pytest.raises(InferenceUnavailable):
            client.predict("text", TaskKind.SKILLS)
        assert session.post.call_count == 3

    def test_timeout_is_not_retried(self, client, session):
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(InferenceTimeout):
            client.predict("text", TaskKind.SKILLS)
        assert session.post.call_count == 1

    def test_exhausted_deadline_times_out(self, inference_config, session):
        client = InferenceClient(replace(inference_config, timeout_seconds=0), session=session)
        with pytest.raises(InferenceTimeout):
            client.predict("text", TaskKind.SKILLS)
        session.post.assert_not_called()

    def test_invalid_json_is_bad_response(self, client, session):
        session.post.return_value = http_response(raw=b"<html>oops</html>")
        with pytest.raises(InferenceBadResponse):
            client.predict("text", TaskKind.SKILLS)
        assert session.post.call_count == 1

    def test_empty_body_is_bad_response(self, client, session):
        session.post.return_value = http_response(raw=b"")
        with pytest.raises(InferenceBadResponse):
            client.predict("text", TaskKind.SKILLS)

    def test_empty_prediction_is_bad_response(self, client, session):
        session.post.return_value = http_response(body=zero_shot([], []))
        with pytest.raises(InferenceBadResponse, match="Empty prediction"):
            client.predict("text", TaskKind.SKILLS)

    def test_client_error_is_not_retried(self, client, session):
        session.post.return_value = http_response(status=400, body={"error": "bad input"})
        with pytest.raises(InferenceBadResponse):
            client.predict("text", TaskKind.SKILLS)
        assert session.post.call_count == 1

    def test_response_is_closed(self, client, session):
        response = http_response(body=zero_shot(["sql"], [0.9]))
        session.post.return_value = response
        client.predict("text", TaskKind.SKILLS)
        response.close.assert_called()


    def test_cancel_aborts_in_flight_body_read(self, client, session):
        response = BlockingResponse()
        session.post.return_value = response
        token = CancelToken()
        timer = threading.Timer(0.1, token.cancel)
        timer.start()
        try:
            with pytest.raises(PipelineCancelled):
                client.predict("text", TaskKind.SKILLS, cancel=token)
        finally:
            timer.cancel()
        assert response.closed.is_set()
        assert session.post.call_count == 1
