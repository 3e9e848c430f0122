"""Virtual text over every text leaf of the body, with an offset map.

Word splits a visible phrase across as many ``w:t`` leaves as it likes
(spell-check marks, revision ids, formatting changes). Matching is done on
the concatenation of all leaves; each span maps a range of that
concatenation back to the leaf that contributed it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator
from xml.etree import ElementTree as ET

from .container import BodyTree
from .ooxml import NodeKind, iter_kind

logger = logging.getLogger(__name__)


@dataclass
class TextSpan:
    """Range ``[start, end)`` of the virtual text owned by one leaf."""

    start: int
    end: int
    node: ET.Element

    def overlaps(self, start: int, end: int) -> bool:
        return self.end > start and self.start < end


@dataclass
class TextIndex:
    virtual_text: str
    spans: list[TextSpan]

    def overlapping(self, start: int, end: int) -> Iterator[TextSpan]:
        """Spans intersecting ``[start, end)``, in document order."""
        for span in self.spans:
            if span.start >= end:
                break
            if span.overlaps(start, end):
                yield span


def build_index(tree: BodyTree | ET.Element) -> TextIndex:
    """Walk all text leaves in document order and record their offsets.

    Args:
        tree: Body tree (or any element) to index.

    Returns:
        TextIndex whose spans cover ``[0, len(virtual_text))`` without gaps.
    """
    root = tree.root if isinstance(tree, BodyTree) else tree
    parts: list[str] = []
    spans: list[TextSpan] = []
    offset = 0
    for node in iter_kind(root, NodeKind.TEXT):
        text = node.text or ""
        spans.append(TextSpan(start=offset, end=offset + len(text), node=node))
        parts.append(text)
        offset += len(text)

    virtual_text = "".join(parts)
    logger.debug("Indexed %d text leaves (%d chars)", len(spans), len(virtual_text))
    return TextIndex(virtual_text=virtual_text, spans=spans)
