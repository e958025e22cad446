"""Website metadata collection: scraper and optional LLM enrichment."""

from inspo.scrape.enrich import MetadataEnricher
from inspo.scrape.metadata import (
    FetchError,
    MetadataScraper,
    ScrapeResult,
    SsrfError,
    parse_metadata,
)

__all__ = [
    "FetchError",
    "MetadataEnricher",
    "MetadataScraper",
    "ScrapeResult",
    "SsrfError",
    "parse_metadata",
]
