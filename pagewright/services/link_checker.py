"""Audit relative links across the pages of one publish.

Runs over the rendered HTML before upload.  Every relative ``href``/``src``
is resolved against the page's directory and must land on a file of the
artifact set; directory links resolve to their ``index.html``.
"""

import posixpath
from typing import Dict, List, NamedTuple

from bs4 import BeautifulSoup

_IGNORE_PREFIXES = ("http://", "https://", "//", "mailto:", "tel:", "data:", "javascript:")


class BrokenLink(NamedTuple):
    source: str
    attr: str
    url: str
    resolved: str


def _strip_fragment_and_query(url: str) -> str:
    return url.split("#", 1)[0].split("?", 1)[0]


def _resolve(source: str, target: str) -> str:
    """Resolve *target* relative to the artifact path *source*."""
    if target == "/":
        return "index.html"
    base = posixpath.dirname(source)
    joined = posixpath.normpath(posixpath.join(base, target)) if base else posixpath.normpath(target)
    if target.endswith("/") or joined in (".", ""):
        joined = "index.html" if joined in (".", "") else f"{joined}/index.html"
    return joined


def find_broken_links(documents: Dict[str, str], extra_files: List[str]) -> List[BrokenLink]:
    """Return relative links in *documents* that point outside the artifact set.

    Args:
        documents:   ``{artifact_path: html}`` for every page of the publish.
        extra_files: other artifact paths that exist (e.g. ``styles.css``).
    """
    known = set(documents) | set(extra_files)
    broken: List[BrokenLink] = []

    for source, html in documents.items():
        soup = BeautifulSoup(html, "lxml")
        for tag in soup.find_all(True):
            for attr in ("href", "src"):
                url = str(tag.get(attr) or "").strip()
                if not url or url.startswith("#") or url.lower().startswith(_IGNORE_PREFIXES):
                    continue
                target = _strip_fragment_and_query(url)
                if not target:
                    continue
                resolved = _resolve(source, target)
                if resolved.startswith("..") or resolved not in known:
                    broken.append(BrokenLink(source, attr, url, resolved))

    broken.sort(key=lambda link: (link.source, link.attr, link.url))
    return broken
