"""Service layer: project and inspiration CRUD over the object stores.

Every public operation is a coroutine. The service holds no cached records:
each call reads or writes through the Store it was constructed with, so two
services over the same database always agree.

Referential integrity:
  - an inspiration can only be created under an existing project
  - an inspiration's project_id never changes
  - deleting a project deletes its inspirations in the same transaction

Deletes of missing records are no-ops; updates of missing records raise
NotFoundError.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from inspo.config import InspoConfig
from inspo.db.models import Inspiration, Project, ProjectOverview, WebsiteMetadata
from inspo.db.schema import INSPIRATIONS, PROJECTS
from inspo.db.store import Store, open_store
from inspo.errors import NotFoundError, ValidationError
from inspo.scrape.enrich import MetadataEnricher
from inspo.scrape.metadata import MetadataScraper, ScrapeResult

logger = logging.getLogger(__name__)

_PROJECT_INDEX = "project_id"

T = TypeVar("T")


class Scraper(Protocol):
    def scrape(self, url: str) -> ScrapeResult: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


def _touch(previous: str) -> str:
    """Return a fresh updated_at that never sorts before *previous*."""
    return max(_now(), previous)


def _require_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Project name must not be empty.")
    return name.strip()


def with_latency(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Sleep for the service's configured latency before running *func*.

    Development aid only: the delay never fails a call and never retries.
    """

    @functools.wraps(func)
    async def wrapper(self: InspirationService, *args: Any, **kwargs: Any) -> T:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000)
        return await func(self, *args, **kwargs)

    return wrapper


class InspirationService:
    """CRUD and query operations for projects and inspirations.

    Args:
        store:            Open Store (see inspo.db.store.open_store).
        latency_ms:       Artificial delay before each call; 0 disables it.
        scraper:          Object with ``scrape(url) -> ScrapeResult``; run in a
                          worker thread by fetch_website_metadata().
        enricher:         Optional MetadataEnricher for missing fields.
        metadata_timeout: Seconds before a fetch is abandoned and degraded
                          metadata is returned.
    """

    def __init__(
        self,
        store: Store,
        *,
        latency_ms: int = 0,
        scraper: Scraper | None = None,
        enricher: MetadataEnricher | None = None,
        metadata_timeout: float = 10.0,
    ) -> None:
        self._store = store
        self.latency_ms = latency_ms
        self._scraper = scraper or MetadataScraper(timeout=metadata_timeout)
        self._enricher = enricher
        self.metadata_timeout = metadata_timeout

    @classmethod
    def from_config(cls, cfg: InspoConfig) -> InspirationService:
        """Build a service over the process-wide store for cfg.database.path."""
        enricher = (
            MetadataEnricher(cfg.metadata.enrich_model, timeout=cfg.metadata.timeout)
            if cfg.metadata.enrich_model
            else None
        )
        return cls(
            open_store(cfg.database.path),
            latency_ms=cfg.service.latency_ms,
            scraper=MetadataScraper(
                timeout=cfg.metadata.timeout, max_redirects=cfg.metadata.max_redirects
            ),
            enricher=enricher,
            metadata_timeout=cfg.metadata.timeout,
        )

    @property
    def store(self) -> Store:
        return self._store

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    @with_latency
    async def create_project(self, name: str, description: str = "") -> Project:
        """Create and persist a new project.

        Raises:
            ValidationError: If *name* is empty or blank.
        """
        now = _now()
        project = Project(
            id=_new_id(),
            name=_require_name(name),
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        self._store.put(PROJECTS, project.to_record())
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    @with_latency
    async def get_project(self, project_id: str) -> Project:
        return self._load_project(project_id)

    @with_latency
    async def update_project(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Apply the given fields to a project and bump updated_at.

        Raises:
            NotFoundError: If the project does not exist.
            ValidationError: If *name* is given but blank.
        """
        project = self._load_project(project_id)
        if name is not None:
            project.name = _require_name(name)
        if description is not None:
            project.description = description
        project.updated_at = _touch(project.updated_at)
        self._store.put(PROJECTS, project.to_record())
        return project

    @with_latency
    async def delete_project(self, project_id: str) -> int:
        """Delete a project and all of its inspirations atomically.

        No-op for an unknown id. Returns the number of inspirations removed.
        """
        if self._store.get(PROJECTS, project_id) is None:
            return 0
        with self._store.transaction():
            self._store.delete(PROJECTS, project_id)
            removed = self._store.delete_by_index(INSPIRATIONS, _PROJECT_INDEX, project_id)
        logger.info("Deleted project %s and %d inspiration(s)", project_id, removed)
        return removed

    @with_latency
    async def list_projects(self, *, newest_first: bool = True) -> list[Project]:
        """Return all projects sorted by created_at (newest first by default)."""
        return self._all_projects(newest_first)

    @with_latency
    async def list_project_overviews(
        self,
        *,
        newest_first: bool = True,
        include_inspirations: bool = False,
    ) -> list[ProjectOverview]:
        """Return every project with its inspiration count.

        With *include_inspirations*, each overview also carries the project's
        inspirations in browsing order (oldest first).
        """
        overviews = []
        for project in self._all_projects(newest_first):
            if include_inspirations:
                items = self._inspirations_of(project.id)
                overviews.append(ProjectOverview(project, len(items), items))
            else:
                count = self._store.count_by_index(INSPIRATIONS, _PROJECT_INDEX, project.id)
                overviews.append(ProjectOverview(project, count))
        return overviews

    # ------------------------------------------------------------------
    # Inspirations
    # ------------------------------------------------------------------

    @with_latency
    async def create_inspiration(
        self,
        project_id: str,
        metadata: WebsiteMetadata,
        screenshot: str = "",
        notes: str = "",
    ) -> Inspiration:
        """Create an inspiration under an existing project.

        Raises:
            NotFoundError: If *project_id* does not reference a project.
            ValidationError: If *screenshot* is None.
        """
        return self._create_inspiration(project_id, metadata, screenshot, notes)

    @with_latency
    async def add_inspiration_from_url(
        self,
        project_id: str,
        url: str,
        screenshot: str = "",
        notes: str = "",
    ) -> Inspiration:
        """Fetch metadata for *url* and create an inspiration from it.

        The project is checked before fetching. A failed or slow fetch yields
        degraded metadata; it never fails the creation.
        """
        self._load_project(project_id)
        metadata = await self._fetch_website_metadata(url)
        return self._create_inspiration(project_id, metadata, screenshot, notes)

    @with_latency
    async def get_inspiration(self, inspiration_id: str) -> Inspiration:
        return self._load_inspiration(inspiration_id)

    @with_latency
    async def update_inspiration(
        self,
        inspiration_id: str,
        *,
        notes: str | None = None,
        screenshot: str | None = None,
        website_metadata: WebsiteMetadata | None = None,
    ) -> Inspiration:
        """Apply the given fields to an inspiration and bump updated_at.

        project_id is not patchable.

        Raises:
            NotFoundError: If the inspiration does not exist.
        """
        inspiration = self._load_inspiration(inspiration_id)
        if notes is not None:
            inspiration.notes = notes
        if screenshot is not None:
            inspiration.screenshot = screenshot
        if website_metadata is not None:
            inspiration.website_metadata = website_metadata
        inspiration.updated_at = _touch(inspiration.updated_at)
        self._store.put(INSPIRATIONS, inspiration.to_record())
        return inspiration

    @with_latency
    async def delete_inspiration(self, inspiration_id: str) -> None:
        """Delete an inspiration. No-op for an unknown id."""
        self._store.delete(INSPIRATIONS, inspiration_id)

    @with_latency
    async def list_inspirations_by_project(self, project_id: str) -> list[Inspiration]:
        """Return a project's inspirations, oldest first.

        An unknown project simply has no inspirations.
        """
        return self._inspirations_of(project_id)

    @with_latency
    async def purge_orphans(self) -> int:
        """Delete inspirations whose project no longer exists.

        Returns the number of inspirations removed.
        """
        removed = 0
        with self._store.transaction():
            for project_id in self._store.distinct_index_values(INSPIRATIONS, _PROJECT_INDEX):
                if self._store.get(PROJECTS, project_id) is None:
                    removed += self._store.delete_by_index(
                        INSPIRATIONS, _PROJECT_INDEX, project_id
                    )
        if removed:
            logger.warning("Purged %d orphaned inspiration(s)", removed)
        return removed

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @with_latency
    async def fetch_website_metadata(self, url: str) -> WebsiteMetadata:
        """Scrape *url* for metadata, degrading instead of failing.

        Raises:
            ValidationError: If *url* is not an http(s) URL. Every other
                failure, including the timeout, returns
                WebsiteMetadata.degraded(url).
        """
        return await self._fetch_website_metadata(url)

    async def _fetch_website_metadata(self, url: str) -> WebsiteMetadata:
        MetadataScraper.validate_url(url)
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._scraper.scrape, url),
                timeout=self.metadata_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Metadata fetch for %s timed out after %ss; using degraded metadata",
                url,
                self.metadata_timeout,
            )
            return WebsiteMetadata.degraded(url)
        except Exception as exc:
            logger.warning("Metadata fetch for %s failed: %s; using degraded metadata", url, exc)
            return WebsiteMetadata.degraded(url)

        if self._enricher is None:
            return result.metadata
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._enricher.enrich, result.metadata, result.text),
                timeout=self.metadata_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Metadata enrichment for %s timed out after %ss; keeping scraped metadata",
                url,
                self.metadata_timeout,
            )
            return result.metadata

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_project(self, project_id: str) -> Project:
        record = self._store.get(PROJECTS, project_id)
        if record is None:
            raise NotFoundError("project", project_id)
        return Project.from_record(record)

    def _load_inspiration(self, inspiration_id: str) -> Inspiration:
        record = self._store.get(INSPIRATIONS, inspiration_id)
        if record is None:
            raise NotFoundError("inspiration", inspiration_id)
        return Inspiration.from_record(record)

    def _all_projects(self, newest_first: bool) -> list[Project]:
        projects = [Project.from_record(r) for r in self._store.get_all(PROJECTS)]
        return sorted(projects, key=lambda p: p.created_at, reverse=newest_first)

    def _inspirations_of(self, project_id: str) -> list[Inspiration]:
        records = self._store.query_by_index(INSPIRATIONS, _PROJECT_INDEX, project_id)
        items = [Inspiration.from_record(r) for r in records]
        return sorted(items, key=lambda i: i.created_at)

    def _create_inspiration(
        self,
        project_id: str,
        metadata: WebsiteMetadata,
        screenshot: str,
        notes: str,
    ) -> Inspiration:
        if screenshot is None:
            raise ValidationError("Screenshot locator must not be None; use '' when absent.")
        if not isinstance(metadata, WebsiteMetadata):
            raise ValidationError("metadata must be a WebsiteMetadata value.")
        self._load_project(project_id)

        now = _now()
        inspiration = Inspiration(
            id=_new_id(),
            project_id=project_id,
            website_metadata=metadata,
            screenshot=screenshot,
            notes=notes or "",
            created_at=now,
            updated_at=now,
        )
        self._store.put(INSPIRATIONS, inspiration.to_record())
        logger.info("Created inspiration %s in project %s", inspiration.id, project_id)
        return inspiration
