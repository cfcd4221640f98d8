"""Load client and engine configuration from YAML settings plus env."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests
import yaml
from dotenv import load_dotenv
from requests.adapters import HTTPAdapter

from jobsuggest.errors import InferenceUnavailable, SearchUnavailable
from jobsuggest.log import get_logger
from jobsuggest.retry import RetryPolicy

log = get_logger(__name__)

load_dotenv()

CONFIG_DIR: Path = Path(__file__).resolve().parent.parent / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"

DEFAULT_SKILL_LABELS: tuple[str, ...] = (
    "python", "java", "javascript", "typescript", "react", "node.js", "angular",
    "sql", "nosql", "mongodb", "postgresql", "mysql", "redis", "docker",
    "kubernetes", "aws", "gcp", "azure", "terraform", "linux", "git", "ci/cd",
    "rest", "graphql", "microservices", "agile", "scrum", "excel", "power bi",
    "tableau", "machine learning", "deep learning", "nlp", "data analysis",
    "pandas", "spark", "kafka", "figma", "ui/ux", "project management",
    "stakeholder management", "communication", "leadership", "c#", ".net",
)

DEFAULT_ROLE_LABELS: tuple[str, ...] = (
    "software engineer", "backend developer", "frontend developer",
    "full stack developer", "data analyst", "data scientist", "data engineer",
    "machine learning engineer", "devops engineer", "site reliability engineer",
    "cloud engineer", "qa engineer", "product manager", "project manager",
    "ux designer", "business analyst", "technical support engineer",
    "security engineer", "mobile developer", "database administrator",
)


@dataclass(frozen=True)
class InferenceConfig:
    endpoint: str = "https://router.huggingface.co/hf-inference"
    timeout_seconds: float = 60.0
    api_key: str = ""
    skill_model: str = "facebook/bart-large-mnli"
    role_model: str = "facebook/bart-large-mnli"
    skill_labels: tuple[str, ...] = DEFAULT_SKILL_LABELS
    role_labels: tuple[str, ...] = DEFAULT_ROLE_LABELS
    max_input_chars: int = 2000
    skill_threshold: float = 0.5
    role_threshold: float = 0.3
    max_roles: int = 5
    retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(
            max_attempts=3, base_delay=2.0, retryable=(InferenceUnavailable,)
        )
    )


@dataclass(frozen=True)
class JobSearchConfig:
    app_id: str = ""
    app_key: str = ""
    country: str = "gb"
    base_url: str = "https://api.adzuna.com/v1/api/jobs"
    timeout_seconds: float = 15.0
    results_per_page: int = 20
    retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(
            max_attempts=3, base_delay=1.0, retryable=(SearchUnavailable,)
        )
    )

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.app_key)


@dataclass(frozen=True)
class EngineConfig:
    primary_role_count: int = 3
    secondary_skill_count: int = 5
    fetch_size_per_query: int = 40
    min_score: float = 0.0


@dataclass(frozen=True)
class Settings:
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    search: JobSearchConfig = field(default_factory=JobSearchConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    log.info("Loaded settings from %s", path)
    return data


def _pick(section: dict[str, Any], key: str, env_key: str, cast=str, default: Any = None) -> Any:
    raw = get_env(env_key)
    if raw:
        return cast(raw)
    if section.get(key) is not None:
        return cast(section[key])
    return default


def load_settings(path: Path | str | None = None) -> Settings:
    """Build :class:`Settings` from the YAML file (if any) overridden by env vars."""
    path = Path(path or get_env("JOBSUGGEST_SETTINGS") or SETTINGS_PATH)
    data = _read_yaml(path)
    inf = data.get("inference") or {}
    srch = data.get("search") or {}
    eng = data.get("engine") or {}

    d_inf, d_srch, d_eng = InferenceConfig(), JobSearchConfig(), EngineConfig()

    inference = InferenceConfig(
        endpoint=_pick(inf, "endpoint", "HF_INFERENCE_ENDPOINT", default=d_inf.endpoint).rstrip("/"),
        timeout_seconds=_pick(inf, "timeout_seconds", "HF_TIMEOUT_SECONDS", float, d_inf.timeout_seconds),
        api_key=_pick(inf, "api_key", "HF_API_KEY", default=""),
        skill_model=_pick(inf, "skill_model", "HF_SKILL_MODEL", default=d_inf.skill_model),
        role_model=_pick(inf, "role_model", "HF_ROLE_MODEL", default=d_inf.role_model),
        skill_labels=tuple(inf.get("skill_labels") or d_inf.skill_labels),
        role_labels=tuple(inf.get("role_labels") or d_inf.role_labels),
        max_input_chars=int(inf.get("max_input_chars", d_inf.max_input_chars)),
        skill_threshold=float(inf.get("skill_threshold", d_inf.skill_threshold)),
        role_threshold=float(inf.get("role_threshold", d_inf.role_threshold)),
        max_roles=int(inf.get("max_roles", d_inf.max_roles)),
    )
    search = JobSearchConfig(
        app_id=_pick(srch, "app_id", "ADZUNA_APP_ID", default=""),
        app_key=_pick(srch, "app_key", "ADZUNA_APP_KEY", default=""),
        country=_pick(srch, "country", "ADZUNA_COUNTRY", default=d_srch.country).lower(),
        base_url=_pick(srch, "base_url", "ADZUNA_BASE_URL", default=d_srch.base_url).rstrip("/"),
        timeout_seconds=_pick(srch, "timeout_seconds", "ADZUNA_TIMEOUT_SECONDS", float, d_srch.timeout_seconds),
        results_per_page=int(srch.get("results_per_page", d_srch.results_per_page)),
    )
    engine = EngineConfig(
        primary_role_count=int(eng.get("primary_role_count", d_eng.primary_role_count)),
        secondary_skill_count=int(eng.get("secondary_skill_count", d_eng.secondary_skill_count)),
        fetch_size_per_query=int(eng.get("fetch_size_per_query", d_eng.fetch_size_per_query)),
        min_score=float(eng.get("min_score", d_eng.min_score)),
    )
    if not inference.api_key:
        log.warning("HF_API_KEY is not set; inference calls will be rejected")
    return Settings(inference=inference, search=search, engine=engine)


def make_session(pool_size: int = 10) -> requests.Session:
    """A pooled session, shared by all requests that go to one service."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session
