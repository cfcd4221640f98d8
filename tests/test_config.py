"""Unit tests for settings loading."""
from jobsuggest.config import load_settings


def test_defaults_without_file(tmp_path, monkeypatch):
    for key in ("HF_API_KEY", "HF_TIMEOUT_SECONDS", "ADZUNA_APP_ID", "ADZUNA_APP_KEY", "ADZUNA_COUNTRY"):
        monkeypatch.delenv(key, raising=False)
    settings = load_settings(tmp_path / "missing.yaml")
    assert settings.inference.timeout_seconds == 60.0
    assert settings.inference.endpoint == "https://router.huggingface.co/hf-inference"
    assert not settings.search.configured
    assert settings.engine.primary_role_count == 3


def test_yaml_values_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "inference:\n"
        "  endpoint: https://hf.internal/\n"
        "  timeout_seconds: 20\n"
        "  role_labels: [data analyst, clerk]\n"
        "search:\n"
        "  country: US\n"
        "engine:\n"
        "  fetch_size_per_query: 10\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("HF_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("ADZUNA_APP_ID", "abc")
    monkeypatch.setenv("ADZUNA_APP_KEY", "xyz")
    monkeypatch.delenv("ADZUNA_COUNTRY", raising=False)
    monkeypatch.delenv("HF_INFERENCE_ENDPOINT", raising=False)

    settings = load_settings(path)

    assert settings.inference.endpoint == "https://hf.internal"
    assert settings.inference.timeout_seconds == 5.0
    assert settings.inference.role_labels == ("data analyst", "clerk")
    assert settings.search.country == "us"
    assert settings.search.configured
    assert settings.engine.fetch_size_per_query == 10
