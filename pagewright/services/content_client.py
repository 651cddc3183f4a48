"""HTTP clients for the content service that owns pages, navigation and projects.

Every call is scoped by project in the URL and by tenant in the
``X-Tenant-Id`` header.  Responses may come wrapped in the service's
``{"ok": true, "data": ...}`` envelope or bare; both are accepted.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from pagewright.models.document import as_list, as_record, read_string
from pagewright.models.page import NavigationItem, Page, Project

logger = logging.getLogger(__name__)

TIMEOUT = 10  # seconds


def _unwrap(payload: Any) -> Any:
    record = as_record(payload)
    if record is not None and "data" in record:
        return record["data"]
    return payload


def _items(payload: Any) -> List[Any]:
    data = _unwrap(payload)
    record = as_record(data)
    if record is not None:
        return as_list(record.get("items"))
    return as_list(data)


def _pick(record: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = read_string(record.get(key)).strip()
        if value:
            return value
    return None


def _page(raw: Any) -> Optional[Page]:
    record = as_record(raw)
    if record is None:
        return None
    page_id = _pick(record, "id", "_id", "pageId")
    if not page_id:
        return None

    tree = record.get("documentTree", record.get("editorJson", record.get("document_tree")))
    version = record.get("version")
    return Page(
        id=page_id,
        slug=read_string(record.get("slug")),
        title=read_string(record.get("title")),
        is_home=record.get("isHome", record.get("is_home")) is True,
        document_tree=tree if tree is not None else {},
        seo_fields=as_record(record.get("seoFields", record.get("seo_fields"))) or {},
        version=version if isinstance(version, int) and not isinstance(version, bool) else 0,
    )


def _navigation_item(raw: Any) -> Optional[NavigationItem]:
    record = as_record(raw)
    if record is None:
        return None
    return NavigationItem(
        label=read_string(record.get("label")),
        page_id=read_string(record.get("pageId"), read_string(record.get("page_id"))),
    )


def _project(payload: Any, tenant_id: str) -> Optional[Project]:
    data = as_record(_unwrap(payload)) or {}
    record = as_record(data.get("project")) or data
    project_id = _pick(record, "id", "_id")
    if not project_id:
        return None
    return Project(
        id=project_id,
        tenant_id=tenant_id,
        name=read_string(record.get("name")),
        site_name=_pick(record, "siteName", "site_name"),
        locale=_pick(record, "locale"),
        default_locale=_pick(record, "defaultLocale", "default_locale"),
        favicon_asset_id=_pick(record, "faviconAssetId", "favicon_asset_id"),
        default_og_image_asset_id=_pick(record, "defaultOgImageAssetId", "default_og_image_asset_id"),
        latest_publish_id=_pick(record, "latestPublishId", "latest_publish_id"),
        published_at=_pick(record, "publishedAt", "published_at"),
    )


class ContentApiClient:
    """Shared plumbing for the content-service stores."""

    def __init__(self, base_url: str, timeout: float = TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, project_id: str, suffix: str = "") -> str:
        return f"{self.base_url}/projects/{quote(project_id, safe='')}{suffix}"

    async def _request(
        self,
        method: str,
        url: str,
        tenant_id: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        """Send one request; ``None`` on 404, parsed JSON otherwise.

        Raises:
            httpx.HTTPError: on network errors or any other non-2xx status.
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, json=json, headers={"X-Tenant-Id": tenant_id})
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()


class HttpPageStore(ContentApiClient):
    async def list_pages(self, tenant_id: str, project_id: str) -> List[Page]:
        payload = await self._request("GET", self._url(project_id, "/pages"), tenant_id)
        pages = [page for page in (_page(item) for item in _items(payload)) if page is not None]
        logger.info(
            "Loaded %d pages", len(pages),
            extra={"tenant_id": tenant_id, "project_id": project_id},
        )
        return pages

    async def get_navigation(self, tenant_id: str, project_id: str) -> List[NavigationItem]:
        payload = await self._request("GET", self._url(project_id, "/navigation"), tenant_id)
        return [item for item in (_navigation_item(raw) for raw in _items(payload)) if item is not None]


class HttpProjectStore(ContentApiClient):
    async def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]:
        payload = await self._request("GET", self._url(project_id), tenant_id)
        if payload is None:
            return None
        return _project(payload, tenant_id)

    async def set_latest_publish(
        self, tenant_id: str, project_id: str, publish_id: str, published_at: datetime
    ) -> Optional[Project]:
        return await self._put_publication(
            tenant_id, project_id, {"latestPublishId": publish_id, "publishedAt": published_at.isoformat()}
        )

    async def clear_latest_publish(self, tenant_id: str, project_id: str) -> Optional[Project]:
        return await self._put_publication(
            tenant_id, project_id, {"latestPublishId": None, "publishedAt": None}
        )

    async def _put_publication(
        self, tenant_id: str, project_id: str, body: Dict[str, Any]
    ) -> Optional[Project]:
        payload = await self._request("PUT", self._url(project_id, "/publication"), tenant_id, json=body)
        if payload is None:
            return None
        return _project(payload, tenant_id)
