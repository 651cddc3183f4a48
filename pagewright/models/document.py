"""Page document tree: sections → blocks → nodes.

Documents arrive from the editor UI or the AI generator with no schema
enforcement, so :func:`parse_document` accepts anything and never raises.
Unrecognised or malformed nodes become :class:`UnknownNode`, which the
renderer turns into an HTML comment.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class TextNode(BaseModel):
    type: Literal["text"] = "text"
    id: Optional[str] = None
    content: str = ""
    tag: Optional[str] = None
    size: Union[float, str, None] = None
    style: Dict[str, Any] = Field(default_factory=dict)


class ButtonNode(BaseModel):
    type: Literal["button"] = "button"
    id: Optional[str] = None
    label: str = "Button"
    href: str = "#"


class ImageNode(BaseModel):
    type: Literal["image"] = "image"
    id: Optional[str] = None
    asset_ref: Optional[str] = None
    src: Optional[str] = None
    alt: str = "Image"


class UnknownNode(BaseModel):
    """Anything the renderer does not understand; *raw* keeps the payload."""

    type: str = ""
    raw: Any = None


Node = Union[TextNode, ButtonNode, ImageNode, UnknownNode]


class Block(BaseModel):
    id: Optional[str] = None
    nodes: List[Node] = Field(default_factory=list)
    invalid: bool = False


class Section(BaseModel):
    id: Optional[str] = None
    blocks: List[Block] = Field(default_factory=list)
    invalid: bool = False


class DocumentTree(BaseModel):
    sections: List[Section] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Lenient readers
# ---------------------------------------------------------------------------

def as_record(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def read_string(value: Any, fallback: str = "") -> str:
    """Return *value* as a string when it is a string or a number."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # JSON numbers like 3.0 should read as "3", the way the editor wrote them
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return fallback


def _read_id(record: Dict[str, Any]) -> Optional[str]:
    return read_string(record.get("id")) or None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_node(raw: Any) -> Node:
    """Convert one raw node into its tagged variant."""
    record = as_record(raw)
    if record is None:
        return UnknownNode(type="", raw=raw)

    node_type = read_string(record.get("type")).strip().lower()

    if node_type == "text":
        size = record.get("size")
        if isinstance(size, bool) or not isinstance(size, (int, float, str)):
            size = None
        return TextNode(
            id=_read_id(record),
            content=read_string(record.get("content"), read_string(record.get("text"))),
            tag=read_string(record.get("tag")).strip().lower() or None,
            size=size,
            style=as_record(record.get("style")) or {},
        )

    if node_type == "button":
        label = read_string(record.get("label"), read_string(record.get("text"), "Button"))
        href = read_string(record.get("href"), read_string(record.get("url"), "#"))
        return ButtonNode(id=_read_id(record), label=label, href=href or "#")

    if node_type == "image":
        asset_ref = read_string(record.get("asset_ref"), read_string(record.get("assetRef")))
        src = read_string(record.get("src"), read_string(record.get("url")))
        return ImageNode(
            id=_read_id(record),
            asset_ref=asset_ref.strip() or None,
            src=src.strip() or None,
            alt=read_string(record.get("alt"), "Image"),
        )

    return UnknownNode(type=node_type, raw=raw)


def parse_block(raw: Any) -> Block:
    record = as_record(raw)
    if record is None:
        return Block(invalid=True)
    return Block(
        id=_read_id(record),
        nodes=[parse_node(node) for node in as_list(record.get("nodes"))],
    )


def parse_section(raw: Any) -> Section:
    record = as_record(raw)
    if record is None:
        return Section(invalid=True)
    return Section(
        id=_read_id(record),
        blocks=[parse_block(block) for block in as_list(record.get("blocks"))],
    )


def parse_document(raw: Any) -> DocumentTree:
    """Parse an untrusted document tree.  Never raises."""
    record = as_record(raw) or {}
    return DocumentTree(sections=[parse_section(s) for s in as_list(record.get("sections"))])


def collect_asset_refs(raw: Any) -> List[str]:
    """Return every image ``asset_ref`` in *raw*, in document order, deduplicated."""
    refs: List[str] = []
    seen: set = set()
    for section in parse_document(raw).sections:
        for block in section.blocks:
            for node in block.nodes:
                if isinstance(node, ImageNode) and node.asset_ref and node.asset_ref not in seen:
                    seen.add(node.asset_ref)
                    refs.append(node.asset_ref)
    return refs
