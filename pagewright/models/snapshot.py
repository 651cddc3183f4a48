from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SnapshotPage(BaseModel):
    slug: str
    title: str
    document_tree: Any = Field(default_factory=dict)
    seo_fields: Dict[str, Any] = Field(default_factory=dict)


class SnapshotNavItem(BaseModel):
    label: str
    target_slug: str


class SnapshotSettings(BaseModel):
    site_name: Optional[str] = None
    favicon_asset_id: Optional[str] = None
    locale: str = "en"
    default_og_image_asset_id: Optional[str] = None


class Snapshot(BaseModel):
    """Canonical, deterministically ordered view of a project at publish time."""

    pages: List[SnapshotPage]
    navigation: List[SnapshotNavItem]
    settings: SnapshotSettings
