"""Collaborator contracts for the publish pipeline, plus in-memory adapters.

Pages, projects, assets and publish records are owned by other services.
The orchestrator only talks to them through these narrow async interfaces,
always scoped by tenant and project.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from pagewright.errors import InvalidTransition
from pagewright.models.page import NavigationItem, Page, Project
from pagewright.models.publish import PublishRecord


class PageStore(Protocol):
    async def list_pages(self, tenant_id: str, project_id: str) -> List[Page]: ...

    async def get_navigation(self, tenant_id: str, project_id: str) -> List[NavigationItem]: ...


class ProjectStore(Protocol):
    async def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]: ...

    async def set_latest_publish(
        self, tenant_id: str, project_id: str, publish_id: str, published_at: datetime
    ) -> Optional[Project]: ...

    async def clear_latest_publish(self, tenant_id: str, project_id: str) -> Optional[Project]: ...


class AssetStore(Protocol):
    async def resolve(self, tenant_id: str, project_id: str, asset_ids: Iterable[str]) -> Dict[str, str]: ...


class BlobStore(Protocol):
    async def upload(
        self, path: str, data: bytes, content_type: str, cache_control: Optional[str] = None
    ) -> str: ...


class PublishRepository(Protocol):
    async def create(self, record: PublishRecord) -> PublishRecord: ...

    async def save(self, record: PublishRecord) -> PublishRecord: ...

    async def get(self, tenant_id: str, project_id: str, publish_id: str) -> Optional[PublishRecord]: ...

    async def list_for_project(self, tenant_id: str, project_id: str, limit: int) -> List[PublishRecord]: ...


# ---------------------------------------------------------------------------
# In-memory adapters
# ---------------------------------------------------------------------------

Scope = Tuple[str, str]


class InMemoryPageStore:
    def __init__(self) -> None:
        self.pages: Dict[Scope, List[Page]] = {}
        self.navigation: Dict[Scope, List[NavigationItem]] = {}

    def put(
        self,
        tenant_id: str,
        project_id: str,
        pages: List[Page],
        navigation: Optional[List[NavigationItem]] = None,
    ) -> None:
        self.pages[(tenant_id, project_id)] = list(pages)
        self.navigation[(tenant_id, project_id)] = list(navigation or [])

    async def list_pages(self, tenant_id: str, project_id: str) -> List[Page]:
        return list(self.pages.get((tenant_id, project_id), []))

    async def get_navigation(self, tenant_id: str, project_id: str) -> List[NavigationItem]:
        return list(self.navigation.get((tenant_id, project_id), []))


class InMemoryProjectStore:
    def __init__(self) -> None:
        self.projects: Dict[Scope, Project] = {}

    def put(self, project: Project) -> None:
        self.projects[(project.tenant_id, project.id)] = project

    async def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]:
        return self.projects.get((tenant_id, project_id))

    async def set_latest_publish(
        self, tenant_id: str, project_id: str, publish_id: str, published_at: datetime
    ) -> Optional[Project]:
        project = self.projects.get((tenant_id, project_id))
        if project is None:
            return None
        updated = project.model_copy(
            update={"latest_publish_id": publish_id, "published_at": published_at}
        )
        self.projects[(tenant_id, project_id)] = updated
        return updated

    async def clear_latest_publish(self, tenant_id: str, project_id: str) -> Optional[Project]:
        project = self.projects.get((tenant_id, project_id))
        if project is None:
            return None
        updated = project.model_copy(update={"latest_publish_id": None, "published_at": None})
        self.projects[(tenant_id, project_id)] = updated
        return updated


class InMemoryAssetStore:
    """Asset URLs keyed by (tenant, project); ids from another project never resolve."""

    def __init__(self) -> None:
        self.urls: Dict[Scope, Dict[str, str]] = {}

    def put(self, tenant_id: str, project_id: str, asset_id: str, url: str) -> None:
        self.urls.setdefault((tenant_id, project_id), {})[asset_id] = url

    async def resolve(self, tenant_id: str, project_id: str, asset_ids: Iterable[str]) -> Dict[str, str]:
        scoped = self.urls.get((tenant_id, project_id), {})
        return {asset_id: scoped[asset_id] for asset_id in asset_ids if asset_id in scoped}


class InMemoryBlobStore:
    def __init__(self, public_base_url: str = "http://localhost:9000/pagewright") -> None:
        self.public_base_url = public_base_url.rstrip("/")
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.cache_controls: Dict[str, Optional[str]] = {}

    async def upload(
        self, path: str, data: bytes, content_type: str, cache_control: Optional[str] = None
    ) -> str:
        self.objects[path] = (data, content_type)
        self.cache_controls[path] = cache_control
        return f"{self.public_base_url}/{path}"


class InMemoryPublishRepository:
    def __init__(self) -> None:
        self.records: Dict[str, PublishRecord] = {}

    async def create(self, record: PublishRecord) -> PublishRecord:
        if record.id in self.records:
            raise ValueError(f"Publish {record.id} already exists")
        self.records[record.id] = record
        return record

    async def save(self, record: PublishRecord) -> PublishRecord:
        existing = self.records.get(record.id)
        if existing is not None and existing.is_terminal:
            raise InvalidTransition(f"Publish {record.id} is already {existing.status}")
        self.records[record.id] = record
        return record

    async def get(self, tenant_id: str, project_id: str, publish_id: str) -> Optional[PublishRecord]:
        record = self.records.get(publish_id)
        if record is None or record.tenant_id != tenant_id or record.project_id != project_id:
            return None
        return record

    async def list_for_project(self, tenant_id: str, project_id: str, limit: int) -> List[PublishRecord]:
        scoped = [
            r for r in self.records.values()
            if r.tenant_id == tenant_id and r.project_id == project_id
        ]
        scoped.sort(key=lambda r: r.created_at, reverse=True)
        return scoped[:limit]
