"""Publish orchestrator: validate, render, upload and record one publish attempt.

State machine of a :class:`~pagewright.models.publish.PublishRecord`::

    publishing ──► live     (every artifact uploaded)
              └──► failed   (preflight violation or any runtime error)

The publish id is allocated before anything is persisted, so the record is
written once with its final artifact root and base URL.  Every failure is
recorded on the record before it propagates to the caller.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
from urllib.parse import quote

from pagewright.config import Settings
from pagewright.errors import InvalidTransition, PreflightViolation, PublishFailure, ReferenceNotFound
from pagewright.models.document import collect_asset_refs
from pagewright.models.page import Page, Project, SeoFields
from pagewright.models.publish import PublishRecord, utcnow
from pagewright.models.render import NavLink, RenderRequest
from pagewright.models.snapshot import Snapshot
from pagewright.services.asset_client import HttpAssetStore
from pagewright.services.blob_store import MinioBlobStore
from pagewright.services.content_client import HttpPageStore, HttpProjectStore
from pagewright.services.link_checker import find_broken_links
from pagewright.services.paths import (
    PublishedObject,
    artifact_path,
    asset_href,
    resolve_published_object,
)
from pagewright.services.preflight import ensure_preflight
from pagewright.services.renderer import render_document, render_page
from pagewright.services.snapshot import build_snapshot, page_slugs, resolve_home_page, snapshot_signature
from pagewright.services.stores import (
    AssetStore,
    BlobStore,
    InMemoryAssetStore,
    InMemoryBlobStore,
    InMemoryPageStore,
    InMemoryProjectStore,
    InMemoryPublishRepository,
    PageStore,
    ProjectStore,
    PublishRepository,
)

logger = logging.getLogger(__name__)

STYLESHEET_NAME = "styles.css"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
CSS_CONTENT_TYPE = "text/css; charset=utf-8"
DEFAULT_PAGE_TITLE = "Untitled Site"

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 100


class PublishTarget(NamedTuple):
    """Identity and storage location of one publish attempt."""

    publish_id: str
    artifact_root: str
    base_url: str


class RenderedPage(NamedTuple):
    path: str
    html: str


class PublishedLocation(NamedTuple):
    """Where one object of a project's live site is stored and served from."""

    publish_id: str
    object_path: str
    public_url: str
    content: PublishedObject


def _cache_control(relative_path: str) -> Optional[str]:
    published = resolve_published_object(relative_path)
    return published.cache_control if published else None


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit <= 0:
        return DEFAULT_LIST_LIMIT
    return min(int(limit), MAX_LIST_LIMIT)


class Publisher:
    """Drives publish attempts against the injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        pages: PageStore,
        projects: ProjectStore,
        assets: AssetStore,
        blobs: BlobStore,
        publishes: PublishRepository,
    ):
        self.settings = settings
        self.pages = pages
        self.projects = projects
        self.assets = assets
        self.blobs = blobs
        self.publishes = publishes

    # ── Identity ─────────────────────────────────────────────────────────────

    def allocate_target(self, tenant_id: str, project_id: str) -> PublishTarget:
        """Allocate a publish id and derive its artifact root and base URL from it."""
        publish_id = uuid.uuid4().hex
        root = (
            f"{self.settings.sites_prefix.strip('/')}/tenants/{tenant_id}"
            f"/projects/{project_id}/publishes/{publish_id}"
        )
        base = self.settings.public_base_url.rstrip("/")
        base_url = f"{base}/{self.settings.minio_bucket}/{root}/"
        return PublishTarget(publish_id, root, base_url)

    # ── Publish ──────────────────────────────────────────────────────────────

    async def publish(self, tenant_id: str, project_id: str) -> PublishRecord:
        """Run one publish attempt and return its ``live`` record.

        Raises:
            ReferenceNotFound: if the project does not exist in the tenant.
            PreflightViolation: if the project fails preflight (record is ``failed``).
            PublishFailure: on any other error (record is ``failed``).
        """
        project = await self.projects.get_project(tenant_id, project_id)
        if project is None:
            raise ReferenceNotFound("Project", project_id)

        target = self.allocate_target(tenant_id, project_id)
        now = utcnow()
        record = await self.publishes.create(
            PublishRecord(
                id=target.publish_id,
                tenant_id=tenant_id,
                project_id=project_id,
                status="publishing",
                base_url=target.base_url,
                artifact_root=target.artifact_root,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Publish started",
            extra={"publish_id": record.id, "tenant_id": tenant_id, "project_id": project_id},
        )

        try:
            record = await self._run(record, project)
        except PreflightViolation as exc:
            await self._mark_failed(record, "; ".join(exc.details))
            logger.warning("Publish %s blocked by preflight: %s", record.id, exc.details)
            raise
        except asyncio.CancelledError:
            await self._mark_failed(record, "Publish cancelled")
            logger.warning("Publish %s cancelled", record.id)
            raise
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            await self._mark_failed(record, message)
            logger.error("Publish %s failed: %s", record.id, message)
            raise PublishFailure(record.id, message) from exc

        await self.projects.set_latest_publish(tenant_id, project_id, record.id, record.updated_at)
        logger.info("Publish %s is live at %s", record.id, record.base_url)
        return record

    async def _run(self, record: PublishRecord, project: Project) -> PublishRecord:
        tenant_id, project_id = record.tenant_id, record.project_id

        pages = await self.pages.list_pages(tenant_id, project_id)
        navigation = await self.pages.get_navigation(tenant_id, project_id)

        snapshot = build_snapshot(pages, navigation, project)
        signature = snapshot_signature(snapshot)
        record = await self.publishes.save(record.with_snapshot(snapshot, signature))
        await self._note_unchanged(record, project)

        ensure_preflight(pages, navigation)

        asset_url_by_id = await self._resolve_assets(tenant_id, project_id, pages, snapshot)
        rendered, css = self._render_all(pages, snapshot, asset_url_by_id)

        for link in find_broken_links({p.path: p.html for p in rendered}, [STYLESHEET_NAME]):
            logger.warning(
                "Broken link in %s: %s %s -> %s", link.source, link.attr, link.url, link.resolved,
                extra={"publish_id": record.id},
            )

        for page in rendered:
            await self.blobs.upload(
                f"{record.artifact_root}/{page.path}",
                page.html.encode("utf-8"),
                HTML_CONTENT_TYPE,
                _cache_control(page.path),
            )
        await self.blobs.upload(
            f"{record.artifact_root}/{STYLESHEET_NAME}",
            css.encode("utf-8"),
            CSS_CONTENT_TYPE,
            _cache_control(STYLESHEET_NAME),
        )

        return await self.publishes.save(record.transition("live"))

    async def _note_unchanged(self, record: PublishRecord, project: Project) -> None:
        if not project.latest_publish_id or not record.snapshot_signature:
            return
        previous = await self.publishes.get(record.tenant_id, record.project_id, project.latest_publish_id)
        if previous is not None and previous.snapshot_signature == record.snapshot_signature:
            logger.info(
                "Publish %s has the same content as live publish %s", record.id, previous.id,
                extra={"publish_id": record.id, "tenant_id": record.tenant_id, "project_id": record.project_id},
            )

    async def _mark_failed(self, record: PublishRecord, message: str) -> None:
        current = await self.publishes.get(record.tenant_id, record.project_id, record.id) or record
        if current.is_terminal:
            return
        try:
            await self.publishes.save(current.transition("failed", message))
        except InvalidTransition:
            logger.warning("Publish %s reached a terminal state concurrently", record.id)

    async def _resolve_assets(
        self,
        tenant_id: str,
        project_id: str,
        pages: Sequence[Page],
        snapshot: Snapshot,
    ) -> Dict[str, str]:
        """One scoped lookup for every image, favicon and og:image asset."""
        refs: List[str] = []
        for page in pages:
            refs.extend(collect_asset_refs(page.document_tree))
            og_asset = SeoFields.from_raw(page.seo_fields).og_image_asset_id
            if og_asset:
                refs.append(og_asset)
        for settings_asset in (snapshot.settings.favicon_asset_id, snapshot.settings.default_og_image_asset_id):
            if settings_asset:
                refs.append(settings_asset)

        unique = list(dict.fromkeys(refs))
        if not unique:
            return {}
        return await self.assets.resolve(tenant_id, project_id, unique)

    def _render_all(
        self,
        pages: Sequence[Page],
        snapshot: Snapshot,
        asset_url_by_id: Dict[str, str],
    ) -> Tuple[List[RenderedPage], str]:
        home = resolve_home_page(pages)
        slugs = page_slugs(pages)
        nav_links = [NavLink(label=n.label, target_slug=n.target_slug) for n in snapshot.navigation]

        settings = snapshot.settings
        favicon_url = asset_url_by_id.get(settings.favicon_asset_id or "", "")
        default_og_image_url = asset_url_by_id.get(settings.default_og_image_asset_id or "", "")

        rendered: List[RenderedPage] = []
        shared_css = ""
        for page in pages:
            is_home = home is not None and page.id == home.id
            current_slug = slugs[page.id]
            result = render_page(
                RenderRequest(
                    page_id=page.id,
                    document_tree=page.document_tree,
                    current_slug=current_slug,
                    nav_links=nav_links,
                    asset_url_by_id=asset_url_by_id,
                    page_title=page.title.strip() or DEFAULT_PAGE_TITLE,
                    seo_fields=page.seo_fields,
                    site_name=settings.site_name,
                    favicon_url=favicon_url,
                    default_og_image_url=default_og_image_url,
                    locale=settings.locale,
                )
            )
            if not shared_css:
                shared_css = result.css
            html = render_document(result, asset_href(current_slug, STYLESHEET_NAME))
            rendered.append(RenderedPage(artifact_path(current_slug, is_home), html))

        return rendered, shared_css

    # ── Queries ──────────────────────────────────────────────────────────────

    async def get_publish(self, tenant_id: str, project_id: str, publish_id: str) -> PublishRecord:
        record = await self.publishes.get(tenant_id, project_id, publish_id)
        if record is None:
            raise ReferenceNotFound("Publish", publish_id)
        return record

    async def list_publishes(self, tenant_id: str, project_id: str, limit: Optional[int] = None) -> List[PublishRecord]:
        await self._require_project(tenant_id, project_id)
        return await self.publishes.list_for_project(tenant_id, project_id, clamp_limit(limit))

    async def get_latest_publish(self, tenant_id: str, project_id: str) -> Optional[PublishRecord]:
        project = await self._require_project(tenant_id, project_id)
        if not project.latest_publish_id:
            return None
        return await self.publishes.get(tenant_id, project_id, project.latest_publish_id)

    async def set_latest_publish(self, tenant_id: str, project_id: str, publish_id: str) -> PublishRecord:
        """Point the project's latest-publish pointer at an existing ``live`` record."""
        await self._require_project(tenant_id, project_id)
        record = await self.get_publish(tenant_id, project_id, publish_id)
        if record.status != "live":
            raise InvalidTransition(f"Publish {publish_id} is {record.status}, not live")
        await self.projects.set_latest_publish(tenant_id, project_id, record.id, utcnow())
        return record

    async def unpublish(self, tenant_id: str, project_id: str) -> Project:
        """Clear the project's latest-publish pointer.

        Publish records and their artifacts are kept, so an earlier ``live``
        publish can be restored with :meth:`set_latest_publish`.
        """
        await self._require_project(tenant_id, project_id)
        project = await self.projects.clear_latest_publish(tenant_id, project_id)
        if project is None:
            raise ReferenceNotFound("Project", project_id)
        logger.info("Project unpublished", extra={"tenant_id": tenant_id, "project_id": project_id})
        return project

    async def locate_published_object(
        self, tenant_id: str, project_id: str, request_path: str
    ) -> PublishedLocation:
        """Map a request path on the live site to its stored object.

        Raises:
            ReferenceNotFound: if the project has no live publish or the path
                cannot name an object inside the publish root.
        """
        record = await self.get_latest_publish(tenant_id, project_id)
        if record is None or record.status != "live":
            raise ReferenceNotFound("Live publish for project", project_id)
        content = resolve_published_object(request_path)
        if content is None:
            raise ReferenceNotFound("Published object", request_path)
        return PublishedLocation(
            publish_id=record.id,
            object_path=f"{record.artifact_root}/{content.relative_path}",
            public_url=f"{record.base_url}{quote(content.relative_path)}",
            content=content,
        )

    async def _require_project(self, tenant_id: str, project_id: str) -> Project:
        project = await self.projects.get_project(tenant_id, project_id)
        if project is None:
            raise ReferenceNotFound("Project", project_id)
        return project


def build_publisher(settings: Settings) -> Publisher:
    """Wire a :class:`Publisher` from *settings*.

    Each collaborator switches from its in-memory adapter to the content
    service, the asset service or MinIO when that backend is configured.
    """
    pages: PageStore
    projects: ProjectStore
    if settings.content_api_url:
        pages = HttpPageStore(settings.content_api_url, timeout=settings.content_api_timeout)
        projects = HttpProjectStore(settings.content_api_url, timeout=settings.content_api_timeout)
    else:
        logger.warning("No content service configured; page and project stores are in-memory")
        pages = InMemoryPageStore()
        projects = InMemoryProjectStore()

    assets: AssetStore
    if settings.assets_api_url:
        assets = HttpAssetStore(settings.assets_api_url, timeout=settings.assets_api_timeout)
    else:
        assets = InMemoryAssetStore()

    blobs: BlobStore
    if settings.blob_backend == "minio":
        blobs = MinioBlobStore.from_settings(settings)
    else:
        blobs = InMemoryBlobStore(f"{settings.public_base_url.rstrip('/')}/{settings.minio_bucket}")

    return Publisher(
        settings=settings,
        pages=pages,
        projects=projects,
        assets=assets,
        blobs=blobs,
        publishes=InMemoryPublishRepository(),
    )
