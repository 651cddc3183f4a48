from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from pagewright.models.document import as_record, read_string


class SeoFields(BaseModel):
    """Per-page SEO overrides.  Every field is optional."""

    title: Optional[str] = None
    description: Optional[str] = None
    og_image_asset_id: Optional[str] = None
    og_image_url: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "SeoFields":
        """Read SEO fields leniently from an untyped mapping (camelCase or snake_case)."""
        record = as_record(raw) or {}

        def pick(*keys: str) -> Optional[str]:
            for key in keys:
                value = read_string(record.get(key)).strip()
                if value:
                    return value
            return None

        return cls(
            title=pick("title"),
            description=pick("description"),
            og_image_asset_id=pick("ogImageAssetId", "og_image_asset_id"),
            og_image_url=pick("ogImageUrl", "og_image_url", "ogImage"),
        )


class Page(BaseModel):
    """One page as supplied by the page store."""

    id: str
    slug: str = ""
    title: str = ""
    is_home: bool = False
    document_tree: Any = Field(default_factory=dict)
    seo_fields: Dict[str, Any] = Field(default_factory=dict)
    version: int = 0


class NavigationItem(BaseModel):
    """Weak reference into the page set; validity is only checked at publish time."""

    label: str = ""
    page_id: str = ""


class Project(BaseModel):
    id: str
    tenant_id: str = "default"
    name: str = ""
    site_name: Optional[str] = None
    locale: Optional[str] = None
    default_locale: Optional[str] = None
    favicon_asset_id: Optional[str] = None
    default_og_image_asset_id: Optional[str] = None
    latest_publish_id: Optional[str] = None
    published_at: Optional[datetime] = None
