"""HTML renderer: compiles one page document tree into HTML, CSS and head tags.

The renderer is pure and never raises on document content.  Malformed or
unknown nodes render as HTML comments, missing images fall back to a
placeholder, and every piece of user text is escaped.
"""

import hashlib
import html
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from pagewright.models.document import (
    Block,
    ButtonNode,
    ImageNode,
    Node,
    Section,
    TextNode,
    parse_document,
    read_string,
)
from pagewright.models.page import SeoFields
from pagewright.models.render import NavLink, RenderRequest, RenderResult
from pagewright.services.paths import canonical_slug, to_static_href

IMAGE_PLACEHOLDER_SRC = "https://placehold.co/1200x800?text=Image"
DEFAULT_TITLE = "Untitled Site"
DEFAULT_LANG = "en"

# Conservative BCP-47-ish charset; anything else falls back to DEFAULT_LANG
_LOCALE_RE = re.compile(r"^[A-Za-z0-9-]{1,35}$")

# Named sizes the editor and the generator emit for text nodes
_NAMED_SIZES = {
    "h1": 48,
    "display": 48,
    "4xl": 48,
    "3xl": 48,
    "h2": 32,
    "2xl": 32,
    "xl": 32,
}
_H1_MIN_SIZE = 42
_H2_MIN_SIZE = 30

BASE_CSS = "\n".join(
    [
        ".pw-page{font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto,sans-serif;color:#111827;background:#ffffff;max-width:1200px;margin:0 auto;padding:24px;line-height:1.5}",
        ".pw-nav{display:flex;flex-wrap:wrap;gap:12px;margin:0 0 24px;padding:0 0 12px;border-bottom:1px solid #e5e7eb}",
        ".pw-nav a{color:#111827;text-decoration:none;font-weight:600}",
        ".pw-nav a:hover{text-decoration:underline}",
        ".pw-nav span[aria-current]{color:#6b7280;font-weight:600}",
        ".pw-section{margin:0 0 24px}",
        ".pw-block{display:grid;gap:12px}",
        ".pw-node-text{margin:0}",
        ".pw-node-button{display:inline-block;padding:10px 16px;border-radius:8px;background:#111827;color:#ffffff;text-decoration:none;font-weight:600}",
        ".pw-node-image{max-width:100%;height:auto;border-radius:8px;display:block}",
    ]
)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def _escape(value: str) -> str:
    return html.escape(value, quote=True)


def stable_json(value: Any) -> str:
    """Serialize *value* with recursively sorted keys and no whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

def _parse_size(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in _NAMED_SIZES:
            return float(_NAMED_SIZES[lower])
        match = re.match(r"^-?\d+(?:\.\d+)?", lower)
        if match:
            return float(match.group(0))
    return None


def _text_tag(node: TextNode) -> str:
    if node.tag in ("h1", "h2", "p"):
        return node.tag

    size = _parse_size(node.size)
    if size is None:
        size = _parse_size(node.style.get("fontSize"))
    size = size or 0

    if size >= _H1_MIN_SIZE:
        return "h1"
    if size >= _H2_MIN_SIZE:
        return "h2"
    return "p"


def resolve_button_href(href: str, current_slug: str) -> str:
    """Rewrite internal (``/``-rooted) hrefs relative to *current_slug*."""
    if not href.startswith("/") or href.startswith("//"):
        return href

    path, suffix = href, ""
    cut = min((i for i in (href.find("?"), href.find("#")) if i != -1), default=-1)
    if cut != -1:
        path, suffix = href[:cut], href[cut:]
    return to_static_href(current_slug, path) + suffix


def _image_src(node: ImageNode, asset_url_by_id: Dict[str, str]) -> str:
    if node.asset_ref:
        resolved = read_string(asset_url_by_id.get(node.asset_ref)).strip()
        if resolved:
            return resolved
    return node.src or IMAGE_PLACEHOLDER_SRC


def render_node(node: Node, current_slug: str, asset_url_by_id: Dict[str, str]) -> str:
    if isinstance(node, TextNode):
        tag = _text_tag(node)
        return f'<{tag} class="pw-node-text">{_escape(node.content)}</{tag}>'

    if isinstance(node, ButtonNode):
        href = resolve_button_href(node.href, current_slug)
        return f'<a class="pw-node-button" href="{_escape(href)}">{_escape(node.label)}</a>'

    if isinstance(node, ImageNode):
        src = _image_src(node, asset_url_by_id)
        return f'<img class="pw-node-image" src="{_escape(src)}" alt="{_escape(node.alt)}" />'

    # "--" would terminate the comment early
    node_type = _escape(node.type or "unknown").replace("--", "- -")
    return f"<!-- Unknown node type: {node_type} -->"


def _render_block(block: Block, current_slug: str, asset_url_by_id: Dict[str, str]) -> str:
    if block.invalid:
        return '<div class="pw-block"><!-- Invalid block --></div>'
    nodes = "".join(render_node(n, current_slug, asset_url_by_id) for n in block.nodes)
    attr = f' data-block="{_escape(block.id)}"' if block.id else ""
    return f'<div class="pw-block"{attr}>{nodes}</div>'


def _render_section(section: Section, current_slug: str, asset_url_by_id: Dict[str, str]) -> str:
    if section.invalid:
        return '<section class="pw-section"><!-- Invalid section --></section>'
    blocks = "".join(_render_block(b, current_slug, asset_url_by_id) for b in section.blocks)
    attr = f' data-section="{_escape(section.id)}"' if section.id else ""
    return f'<section class="pw-section"{attr}>{blocks}</section>'


# ---------------------------------------------------------------------------
# Navigation and head
# ---------------------------------------------------------------------------

def _nav_item(label: str, target: str, current: str) -> str:
    if target == current:
        return f'<span aria-current="page">{_escape(label)}</span>'
    return f'<a href="{_escape(to_static_href(current, target))}">{_escape(label)}</a>'


def render_navigation(nav_links: List[NavLink], current_slug: str) -> str:
    """Render the nav bar, or nothing when there are no links.

    The current page is always an inert label, never a self-link.
    """
    if not nav_links:
        return ""
    current = canonical_slug(current_slug)
    items = []
    for link in nav_links:
        target = canonical_slug(link.target_slug)
        items.append(_nav_item(link.label.strip() or target, target, current))
    return f'<nav class="pw-nav">{"".join(items)}</nav>'


def resolve_lang(locale: Optional[str]) -> str:
    candidate = (locale or "").strip()
    return candidate if _LOCALE_RE.match(candidate) else DEFAULT_LANG


def build_head_tags(request: RenderRequest) -> str:
    seo = SeoFields.from_raw(request.seo_fields)

    title = (
        seo.title
        or (request.site_name or "").strip()
        or request.page_title.strip()
        or DEFAULT_TITLE
    )
    tags = [f"<title>{_escape(title)}</title>"]

    if seo.description:
        tags.append(f'<meta name="description" content="{_escape(seo.description)}" />')

    favicon = (request.favicon_url or "").strip()
    if favicon:
        tags.append(f'<link rel="icon" href="{_escape(favicon)}" />')

    og_image = (
        seo.og_image_url
        or (request.asset_url_by_id.get(seo.og_image_asset_id, "") if seo.og_image_asset_id else "")
        or (request.default_og_image_url or "").strip()
    )
    if og_image:
        tags.append(f'<meta property="og:image" content="{_escape(og_image)}" />')

    return "\n    ".join(tags)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_hash(
    document_tree: Any,
    nav_links: List[NavLink],
    current_slug: str,
    css: str,
    head_tags: str,
    lang: str,
) -> str:
    """SHA-256 over the logical render input.  Key order in the tree is irrelevant."""
    payload = "".join(
        [
            stable_json(document_tree if document_tree is not None else {}),
            stable_json([link.model_dump() for link in nav_links]),
            canonical_slug(current_slug),
            css,
            head_tags,
            lang,
        ]
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def render_page(request: RenderRequest) -> RenderResult:
    """Render one page.  Never raises on malformed document content."""
    current_slug = canonical_slug(request.current_slug)
    document = parse_document(request.document_tree)

    nav_html = render_navigation(request.nav_links, current_slug)
    sections = "".join(
        _render_section(s, current_slug, request.asset_url_by_id) for s in document.sections
    )
    body = f'<div class="pw-page" data-page="{_escape(request.page_id)}">{nav_html}{sections}</div>'

    css = BASE_CSS
    head_tags = build_head_tags(request)
    lang = resolve_lang(request.locale)

    return RenderResult(
        html=body,
        css=css,
        hash=compute_hash(request.document_tree, request.nav_links, current_slug, css, head_tags, lang),
        head_tags=head_tags,
        lang=lang,
    )


def render_document(result: RenderResult, css_href: str) -> str:
    """Wrap a rendered body in the fixed static HTML document shell."""
    template = _env.get_template("document.html")
    return template.render(
        lang=result.lang,
        head_tags=result.head_tags,
        css_href=css_href,
        body=result.html,
    )
