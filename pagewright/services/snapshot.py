"""Snapshot builder: canonical, deterministically ordered view of a project.

The snapshot and the publish renderer both resolve "the" home page with
:func:`resolve_home_page`, so they always agree on which page lands at ``/``.
"""

import copy
import hashlib
from typing import Any, Dict, List, Optional, Sequence

from pagewright.models.page import NavigationItem, Page, Project
from pagewright.models.snapshot import Snapshot, SnapshotNavItem, SnapshotPage, SnapshotSettings
from pagewright.services.paths import canonical_slug
from pagewright.services.renderer import stable_json


def resolve_home_page(pages: Sequence[Page]) -> Optional[Page]:
    """Return the home page.

    Precedence (first match wins): ``is_home`` flag → slug exactly ``/`` →
    empty slug → first page in the list.
    """
    if not pages:
        return None
    for page in pages:
        if page.is_home:
            return page
    for page in pages:
        if page.slug.strip() == "/":
            return page
    for page in pages:
        if page.slug.strip() == "":
            return page
    return pages[0]


def page_slug(page: Page, is_home: bool) -> str:
    """Canonical slug for *page*; blank non-home slugs become ``/page-<id>``."""
    if is_home:
        return "/"
    canonical = canonical_slug(page.slug)
    if canonical == "/":
        return f"/page-{page.id}"
    return canonical


def page_slugs(pages: Sequence[Page]) -> Dict[str, str]:
    """Map every page id to its canonical publish slug."""
    home = resolve_home_page(pages)
    home_id = home.id if home else None
    return {page.id: page_slug(page, page.id == home_id) for page in pages}


def _stable_clone(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _stable_clone(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, list):
        return [_stable_clone(item) for item in value]
    return copy.deepcopy(value)


def _optional(value: Optional[str]) -> Optional[str]:
    trimmed = (value or "").strip()
    return trimmed or None


def build_settings(project: Optional[Project]) -> SnapshotSettings:
    if project is None:
        return SnapshotSettings()
    return SnapshotSettings(
        site_name=_optional(project.site_name),
        favicon_asset_id=_optional(project.favicon_asset_id),
        locale=_optional(project.locale) or _optional(project.default_locale) or "en",
        default_og_image_asset_id=_optional(project.default_og_image_asset_id),
    )


def build_snapshot(
    pages: Sequence[Page],
    navigation: Sequence[NavigationItem],
    project: Optional[Project] = None,
) -> Snapshot:
    """Normalize raw pages, navigation and settings into a :class:`Snapshot`.

    Navigation items pointing at unknown pages are dropped here; the publish
    preflight rejects them instead.
    """
    slugs = page_slugs(pages)

    normalized: List[Dict[str, Any]] = []
    for page in pages:
        normalized.append(
            {
                "page_id": page.id,
                "slug": slugs[page.id],
                "title": page.title.strip(),
                "document_tree": _stable_clone(page.document_tree if page.document_tree is not None else {}),
                "seo_fields": _stable_clone(page.seo_fields or {}),
            }
        )
    normalized.sort(key=lambda p: (p["slug"], p["title"], p["page_id"]))

    by_id = {p["page_id"]: p for p in normalized}
    nav_items: List[SnapshotNavItem] = []
    for item in navigation:
        page_id = item.page_id.strip()
        target = by_id.get(page_id)
        if target is None:
            continue
        label = item.label.strip() or target["title"] or page_id
        nav_items.append(SnapshotNavItem(label=label, target_slug=target["slug"]))

    return Snapshot(
        pages=[
            SnapshotPage(
                slug=p["slug"],
                title=p["title"],
                document_tree=p["document_tree"],
                seo_fields=p["seo_fields"],
            )
            for p in normalized
        ],
        navigation=nav_items,
        settings=build_settings(project),
    )


def snapshot_signature(snapshot: Optional[Snapshot]) -> str:
    """SHA-256 over the canonical JSON of *snapshot*.

    Equal snapshots give equal signatures, so a publish whose signature matches
    the live one changes nothing.
    """
    if snapshot is None:
        return ""
    payload = stable_json(snapshot.model_dump(mode="json"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
