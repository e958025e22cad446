"""Metadata enrichment: fill missing title/description via LiteLLM.

Runs after scraping when a model is configured. Only fields that are ``None``
are filled; scraped values are never overwritten. Failures are non-fatal and
leave the metadata untouched.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace

from inspo.db.models import WebsiteMetadata
from inspo.scrape import llm_client

logger = logging.getLogger(__name__)

_ENRICH_PROMPT = """\
You describe websites for a design inspiration library. Based on the page \
below, return a JSON object with two string fields: "title" (the site or page \
name, max 80 characters) and "description" (one sentence, max 200 characters, \
describing what the site is and its visual style). Return only the JSON object.

URL: {url}

Page excerpt (first {limit} characters):
{page_text}
"""

_ENRICHABLE = ("title", "description")
_EXCERPT_LIMIT = 4000


class MetadataEnricher:
    """Fill gaps in scraped WebsiteMetadata with an LLM.

    Args:
        model:      LiteLLM model string.
        max_tokens: Maximum tokens in the completion.
        timeout:    Per-request timeout in seconds (None = LiteLLM default).
    """

    def __init__(
        self, model: str, max_tokens: int = 200, timeout: float | None = None
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout

    def enrich(self, metadata: WebsiteMetadata, page_text: str) -> WebsiteMetadata:
        """Return a copy of *metadata* with missing fields filled where possible."""
        missing = [name for name in _ENRICHABLE if getattr(metadata, name) is None]
        if not missing or not page_text.strip():
            return metadata

        try:
            llm_client.validate_api_key(self._model)
            content = llm_client.complete(
                self._model,
                [{"role": "user", "content": self._prompt(metadata.url, page_text)}],
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
        except Exception as exc:
            logger.warning("Metadata enrichment failed for %s: %s", metadata.url, exc)
            return metadata

        values = _parse_response(content)
        updates = {name: values[name] for name in missing if values.get(name)}
        if not updates:
            return metadata
        logger.debug("Enriched %s with %s", metadata.url, ", ".join(sorted(updates)))
        return replace(metadata, **updates)

    @staticmethod
    def _prompt(url: str, page_text: str) -> str:
        return _ENRICH_PROMPT.format(
            url=url,
            limit=_EXCERPT_LIMIT,
            page_text=page_text[:_EXCERPT_LIMIT],
        )


def _parse_response(text: str) -> dict[str, str]:
    """Extract a JSON object of string fields from an LLM response."""
    text = text.strip()
    candidates = [text]
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if match:
        candidates.append(match.group())
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return {
                k: " ".join(str(v).split())
                for k, v in data.items()
                if isinstance(v, str) and v.strip()
            }
    return {}
