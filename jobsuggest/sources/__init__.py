from jobsuggest.config import JobSearchConfig
from jobsuggest.log import get_logger

from .adzuna import AdzunaSource
from .base import JobSearchClient, Page
from .static import StaticJobSource

log = get_logger(__name__)

__all__ = [
    "JobSearchClient", "Page", "AdzunaSource", "StaticJobSource", "get_source",
]


def get_source(config: JobSearchConfig) -> JobSearchClient:
    if config.configured:
        log.info("Using job source: Adzuna (%s)", config.country)
        return AdzunaSource(config)
    log.info("No Adzuna credentials found — using StaticJobSource")
    return StaticJobSource()
