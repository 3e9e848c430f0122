"""WordprocessingML namespaces and node kinds.

Every structural check in the engine goes through :func:`classify` instead
of comparing qualified tag names inline.
"""

from __future__ import annotations

import enum
import io
from xml.etree import ElementTree as ET

# ---------------------------------------------------------------------------
# OOXML namespaces
# ---------------------------------------------------------------------------
W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_NS = "http://www.w3.org/XML/1998/namespace"

NAMESPACES = {
    "w": W_NS,
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "m": "http://schemas.openxmlformats.org/officeDocument/2006/math",
    "mc": "http://schemas.openxmlformats.org/markup-compatibility/2006",
    "o": "urn:schemas-microsoft-com:office:office",
    "v": "urn:schemas-microsoft-com:vml",
    "w10": "urn:schemas-microsoft-com:office:word",
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "wp14": "http://schemas.microsoft.com/office/word/2010/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "w14": "http://schemas.microsoft.com/office/word/2010/wordml",
    "w15": "http://schemas.microsoft.com/office/word/2012/wordml",
    "wpc": "http://schemas.microsoft.com/office/word/2010/wordprocessingCanvas",
    "wpg": "http://schemas.microsoft.com/office/word/2010/wordprocessingGroup",
    "wpi": "http://schemas.microsoft.com/office/word/2010/wordprocessingInk",
    "wne": "http://schemas.microsoft.com/office/word/2006/wordml",
    "wps": "http://schemas.microsoft.com/office/word/2010/wordprocessingShape",
}

# Register prefixes so ET output uses w: / r: instead of ns0: / ns1:
for _pfx, _uri in NAMESPACES.items():
    ET.register_namespace(_pfx, _uri)

SPACE_ATTR = f"{{{XML_NS}}}space"


def qn(tag: str) -> str:
    """Clark name for a ``w:`` tag, e.g. ``qn("p")`` -> ``{...main}p``."""
    return f"{{{W_NS}}}{tag}"


def register_source_namespaces(data: bytes) -> None:
    """Register the extra prefixes declared in a source part with ElementTree.

    ElementTree keeps one process-wide prefix map in which a later
    registration replaces any earlier one for the same prefix or URI.
    Prefixes and URIs of :data:`NAMESPACES` are therefore never
    re-registered, so that map only ever gains pairs for namespaces outside
    the OOXML table. Auto-style prefixes (``ns0``) and the default namespace
    are skipped because ElementTree cannot reuse them.
    """
    standard_uris = set(NAMESPACES.values())
    seen: set[str] = set()
    for _event, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
        if not prefix or prefix in seen:
            continue
        seen.add(prefix)
        if prefix in NAMESPACES or uri in standard_uris:
            continue
        try:
            ET.register_namespace(prefix, uri)
        except ValueError:
            pass


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------

class NodeKind(enum.Enum):
    PARAGRAPH = "p"
    RUN = "r"
    TEXT = "t"
    TABLE = "tbl"
    ROW = "tr"
    CELL = "tc"
    OTHER = "other"


_KIND_BY_TAG = {
    qn(kind.value): kind for kind in NodeKind if kind is not NodeKind.OTHER
}


def classify(element: ET.Element) -> NodeKind:
    """Return the node kind of an element; anything unknown is OTHER."""
    tag = element.tag
    if not isinstance(tag, str):
        return NodeKind.OTHER
    return _KIND_BY_TAG.get(tag, NodeKind.OTHER)


def iter_kind(element: ET.Element, kind: NodeKind):
    """Pre-order iteration over descendants (and self) of the given kind."""
    for node in element.iter():
        if classify(node) is kind:
            yield node


def child_kind(element: ET.Element, kind: NodeKind) -> list[ET.Element]:
    """Direct children of the given kind."""
    return [child for child in element if classify(child) is kind]


def paragraph_text(element: ET.Element) -> str:
    """Concatenated text of every ``w:t`` under an element."""
    return "".join(t.text or "" for t in iter_kind(element, NodeKind.TEXT))
