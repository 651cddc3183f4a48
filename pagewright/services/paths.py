"""Relative, directory-style link resolution for published pages.

Every published page lives at ``<root>/<slug>/index.html`` (home at
``<root>/index.html``), so a link is just enough ``../`` hops to climb back
to the root followed by the target directory.  ``index.html`` is never part
of a generated href.
"""

import re
from typing import NamedTuple, Optional


def canonical_slug(slug: str) -> str:
    """Return *slug* in canonical absolute form: ``/`` or ``/seg[/seg...]``."""
    trimmed = (slug or "").strip().strip("/")
    if not trimmed:
        return "/"
    segments = [segment for segment in trimmed.split("/") if segment]
    return "/" + "/".join(segments)


def slug_depth(slug: str) -> int:
    """Number of non-empty path segments in *slug* (``/`` has depth 0)."""
    canonical = canonical_slug(slug)
    if canonical == "/":
        return 0
    return len(canonical.strip("/").split("/"))


def to_static_href(current_slug: str, target_slug: str) -> str:
    """Return the relative href from the page at *current_slug* to *target_slug*.

    >>> to_static_href("/", "/about")
    'about/'
    >>> to_static_href("/about", "/")
    '../'
    """
    depth = slug_depth(current_slug)
    prefix = "../" * depth
    target = canonical_slug(target_slug)

    if target == "/":
        return prefix if depth > 0 else "/"
    return f"{prefix}{target.lstrip('/')}/"


def asset_href(current_slug: str, filename: str) -> str:
    """Relative path from *current_slug* to a file stored at the artifact root."""
    return "../" * slug_depth(current_slug) + filename


def artifact_path(slug: str, is_home: bool) -> str:
    """Path of a page's HTML file relative to the artifact root."""
    if is_home:
        return "index.html"
    return f"{canonical_slug(slug).lstrip('/')}/index.html"


# ---------------------------------------------------------------------------
# Reading a published site
# ---------------------------------------------------------------------------

# Objects under a publish root never change; HTML is reached through the
# movable latest pointer
ASSET_CACHE_CONTROL = "public, max-age=31536000, immutable"
HTML_CACHE_CONTROL = "public, max-age=60, must-revalidate"

_FILE_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]+$")


class PublishedObject(NamedTuple):
    relative_path: str
    is_asset: bool
    cache_control: str


def resolve_published_object(request_path: Optional[str]) -> Optional[PublishedObject]:
    """Map a request path under a published site to an object below its root.

    Directory paths (``""``, ``about``, ``about/``) map to their
    ``index.html``; file-like paths are served as-is.  Query strings and
    fragments are ignored.  Returns ``None`` for paths that would leave the
    artifact root.

    >>> resolve_published_object("/about/?ref=nav").relative_path
    'about/index.html'
    >>> resolve_published_object("styles.css").is_asset
    True
    """
    path = (request_path or "").strip().split("?", 1)[0].split("#", 1)[0]
    if "\\" in path:
        return None
    segments = [segment for segment in path.split("/") if segment]
    if any(segment in (".", "..") for segment in segments):
        return None

    if segments and _FILE_EXTENSION_RE.search(segments[-1]):
        relative = "/".join(segments)
        is_asset = not relative.lower().endswith(".html")
    else:
        relative = "/".join(segments + ["index.html"])
        is_asset = False

    return PublishedObject(relative, is_asset, ASSET_CACHE_CONTROL if is_asset else HTML_CACHE_CONTROL)
