"""Domain models for the inspo database layer.

Records are persisted as plain dicts (JSON in SQLite). ``to_record()`` always
emits every field; optional metadata fields are written as ``None`` rather than
omitted so "not scraped" stays distinguishable from an empty scrape result.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any


@dataclass
class ImageDescriptor:
    """One og:image entry."""

    url: str
    width: str | None = None
    height: str | None = None
    type: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ImageDescriptor:
        return cls(
            url=record.get("url", ""),
            width=record.get("width"),
            height=record.get("height"),
            type=record.get("type"),
        )


@dataclass
class WebsiteMetadata:
    url: str
    url_requested: str
    url_resolved: str
    title: str | None = None
    description: str | None = None
    favicon: str | None = None
    author: str | None = None
    date: str | None = None
    image: str | None = None
    logo: str | None = None
    publisher: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_locale: str | None = None
    og_url: str | None = None
    charset: str | None = None
    og_image: list[ImageDescriptor] = field(default_factory=list)

    @classmethod
    def degraded(cls, url: str) -> WebsiteMetadata:
        """Minimal record used when fetching or parsing *url* failed."""
        return cls(url=url, url_requested=url, url_resolved="")

    @property
    def is_degraded(self) -> bool:
        return not self.url_resolved and all(
            getattr(self, name) is None for name in OPTIONAL_METADATA_FIELDS
        )

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> WebsiteMetadata:
        url = record.get("url", "")
        return cls(
            url=url,
            url_requested=record.get("url_requested", url),
            url_resolved=record.get("url_resolved", ""),
            og_image=[ImageDescriptor.from_record(i) for i in record.get("og_image") or []],
            **{name: record.get(name) for name in OPTIONAL_METADATA_FIELDS},
        )


OPTIONAL_METADATA_FIELDS: tuple[str, ...] = tuple(
    f.name
    for f in fields(WebsiteMetadata)
    if f.name not in ("url", "url_requested", "url_resolved", "og_image")
)


@dataclass
class Project:
    id: str
    name: str
    description: str
    created_at: str
    updated_at: str

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Project:
        return cls(
            id=record["id"],
            name=record["name"],
            description=record.get("description", ""),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )


@dataclass
class Inspiration:
    id: str
    project_id: str  # immutable after creation; no re-parenting
    website_metadata: WebsiteMetadata
    screenshot: str
    notes: str
    created_at: str
    updated_at: str

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Inspiration:
        return cls(
            id=record["id"],
            project_id=record["project_id"],
            website_metadata=WebsiteMetadata.from_record(record["website_metadata"]),
            screenshot=record.get("screenshot", ""),
            notes=record.get("notes", ""),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
        )


@dataclass
class ProjectOverview:
    """A project with its inspiration count and, optionally, the inspirations."""

    project: Project
    inspiration_count: int
    inspirations: list[Inspiration] | None = None
