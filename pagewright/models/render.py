from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class NavLink(BaseModel):
    label: str
    target_slug: str


class RenderRequest(BaseModel):
    page_id: str
    document_tree: Any = Field(default_factory=dict)
    current_slug: str = "/"
    nav_links: List[NavLink] = Field(default_factory=list)
    asset_url_by_id: Dict[str, str] = Field(default_factory=dict)
    page_title: str = ""
    seo_fields: Dict[str, Any] = Field(default_factory=dict)
    site_name: Optional[str] = None
    favicon_url: Optional[str] = None
    default_og_image_url: Optional[str] = None
    locale: Optional[str] = None


class RenderResult(BaseModel):
    html: str
    css: str
    hash: str
    head_tags: str
    lang: str
