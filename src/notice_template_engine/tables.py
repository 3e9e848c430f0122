"""Regenerate or remove the lot tables of each auction category.

A category block is the heading paragraph carrying the category label, the
short paragraphs that follow it, and the table right after them. Block
discovery is heuristic and lives in :func:`find_category_block` alone so
that a stricter anchor can replace it without touching row logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence
from xml.etree import ElementTree as ET

from .config.settings import Settings, settings as default_settings
from .container import BodyTree
from .ooxml import NodeKind, W_NS, child_kind, classify, iter_kind, paragraph_text
from .records import RecordRow
from .rules import CategoryTableRule
from .utils import escape_xml, format_currency, super_normalize

logger = logging.getLogger(__name__)

# (width in twips, bold) per column, in output order
COLUMN_LAYOUT = (
    ("lot", "500", False),
    ("plate", "800", True),
    ("description", "2500", False),
    ("condition", "800", False),
    ("appraisal_value", "1000", False),
    ("initial_bid", "1000", True),
    ("increment", "800", False),
    ("closing_time", "800", False),
    ("visitation_location", "1500", False),
    ("visitation_period", "1000", False),
    ("visitation_hours", "1000", False),
    ("scheduling_contact", "1000", False),
)


@dataclass
class TableLocation:
    heading: ET.Element
    block: list[ET.Element]
    table: ET.Element
    parent: ET.Element


@dataclass
class TableOutcome:
    category: str
    status: str  # populated, cleared, removed, missing
    rows: int = 0
    removed_nodes: list[str] = field(default_factory=list)


# -------------------------------------------------------------------
# Block discovery
# -------------------------------------------------------------------

def _parent_map(root: ET.Element) -> dict[ET.Element, ET.Element]:
    return {child: parent for parent in root.iter() for child in parent}


def find_category_block(
    root: ET.Element,
    label: str,
    settings: Settings | None = None,
) -> TableLocation | None:
    """Locate the heading block and adjoining table of a category.

    Paragraphs whose normalized text contains the normalized label are tried
    in document order. From a candidate, following sibling paragraphs shorter
    than ``heading_max_chars`` are absorbed into the block until a table
    sibling is reached; a longer paragraph ends the attempt and the next
    candidate is tried.

    Args:
        root: Document root element.
        label: Category label, e.g. "ALIENAÇÃO ANTECIPADA - OUTROS CRIMES".
        settings: Optional settings override.

    Returns:
        TableLocation, or None when no candidate adjoins a table.
    """
    settings = settings or default_settings
    target = super_normalize(label)
    if not target:
        return None

    parents = _parent_map(root)
    for paragraph in iter_kind(root, NodeKind.PARAGRAPH):
        if target not in super_normalize(paragraph_text(paragraph)):
            continue
        parent = parents.get(paragraph)
        if parent is None:
            continue

        siblings = list(parent)
        block = [paragraph]
        for sibling in siblings[siblings.index(paragraph) + 1:]:
            kind = classify(sibling)
            if kind is NodeKind.TABLE:
                return TableLocation(
                    heading=paragraph, block=block, table=sibling, parent=parent,
                )
            if kind is NodeKind.PARAGRAPH:
                if len(paragraph_text(sibling).strip()) >= settings.heading_max_chars:
                    break
                block.append(sibling)
    return None


# -------------------------------------------------------------------
# Row building
# -------------------------------------------------------------------

def record_cells(record: RecordRow, category: str = "") -> list[str]:
    """Cell texts of one record in :data:`COLUMN_LAYOUT` order."""
    return [
        record.lot or "-",
        record.normalized_plate,
        record.description or "-",
        record.condition or "-",
        format_currency(record.appraisal_value),
        format_currency(record.resolved_initial_bid(category)),
        format_currency(record.increment),
        record.closing_time or "-",
        record.visitation_location or "-",
        record.visitation_period or "-",
        record.visitation_hours or "-",
        record.scheduling_contact or "-",
    ]


def _cell_xml(text: str, width: str, bold: bool) -> str:
    bold_xml = "<w:b/>" if bold else ""
    return (
        "<w:tc>"
        "<w:tcPr>"
        f'<w:tcW w:w="{width}" w:type="dxa"/>'
        "<w:tcBorders>"
        '<w:top w:val="single" w:sz="4" w:space="0" w:color="auto"/>'
        '<w:left w:val="single" w:sz="4" w:space="0" w:color="auto"/>'
        '<w:bottom w:val="single" w:sz="4" w:space="0" w:color="auto"/>'
        '<w:right w:val="single" w:sz="4" w:space="0" w:color="auto"/>'
        "</w:tcBorders>"
        '<w:vAlign w:val="center"/>'
        "</w:tcPr>"
        "<w:p>"
        '<w:pPr><w:jc w:val="center"/></w:pPr>'
        "<w:r>"
        f'<w:rPr>{bold_xml}<w:sz w:val="16"/><w:szCs w:val="16"/></w:rPr>'
        f'<w:t xml:space="preserve">{escape_xml(text)}</w:t>'
        "</w:r>"
        "</w:p>"
        "</w:tc>"
    )


def build_record_row(record: RecordRow, category: str = "") -> ET.Element:
    """Build a ``<w:tr>`` element for one record.

    The fragment is parsed with its own ``xmlns:w`` declaration; once parsed
    the element carries only qualified names, so appending it to the body
    adds no local namespace declarations.
    """
    texts = record_cells(record, category)
    cells = "".join(
        _cell_xml(text, width, bold)
        for text, (_, width, bold) in zip(texts, COLUMN_LAYOUT)
    )
    return ET.fromstring(f'<w:tr xmlns:w="{W_NS}">{cells}</w:tr>')


# -------------------------------------------------------------------
# Table operations
# -------------------------------------------------------------------

def _clear_data_rows(table: ET.Element) -> int:
    """Delete every row but the header. Returns the number deleted."""
    rows = child_kind(table, NodeKind.ROW)
    for row in rows[1:]:
        table.remove(row)
    return max(len(rows) - 1, 0)


def _remove_block(location: TableLocation, settings: Settings) -> list[str]:
    """Remove heading block, table and a trailing increment legend."""
    parent = location.parent
    removed: list[str] = []
    for paragraph in location.block:
        removed.append(paragraph_text(paragraph))
        parent.remove(paragraph)

    marker = super_normalize(settings.legend_marker)
    siblings = list(parent)
    legends = []
    seen = 0
    for sibling in siblings[siblings.index(location.table) + 1:]:
        if seen >= settings.legend_lookahead:
            break
        if classify(sibling) is not NodeKind.PARAGRAPH:
            continue
        if marker and marker in super_normalize(paragraph_text(sibling)):
            legends.append(sibling)
        seen += 1

    for legend in legends:
        removed.append(paragraph_text(legend))
        parent.remove(legend)
    parent.remove(location.table)
    return removed


def synthesize(
    tree: BodyTree | ET.Element,
    bindings: Mapping[str, Sequence[RecordRow]],
    rules: Mapping[str, CategoryTableRule],
    settings: Settings | None = None,
) -> list[TableOutcome]:
    """Regenerate each category's table from its bound records.

    Categories are processed in binding order, then categories that only
    have a rule. A category without a rule keeps its empty table.

    Args:
        tree: Body tree (or document root) to mutate in place.
        bindings: Category label -> ordered records.
        rules: Category label -> table rule.
        settings: Optional settings override.

    Returns:
        One TableOutcome per processed category.
    """
    settings = settings or default_settings
    root = tree.root if isinstance(tree, BodyTree) else tree

    categories = list(bindings) + [label for label in rules if label not in bindings]
    outcomes: list[TableOutcome] = []
    for label in categories:
        records = list(bindings.get(label) or [])
        rule = rules.get(label) or CategoryTableRule(label=label)

        location = find_category_block(root, label, settings)
        if location is None:
            logger.warning("No heading/table block found for category '%s'", label)
            outcomes.append(TableOutcome(category=label, status="missing"))
            continue

        if not records and rule.remove_when_empty:
            removed = _remove_block(location, settings)
            logger.info("Removed empty block '%s' (%d paragraphs)", label, len(removed))
            outcomes.append(TableOutcome(category=label, status="removed", removed_nodes=removed))
            continue

        deleted = _clear_data_rows(location.table)
        for record in records:
            location.table.append(build_record_row(record, label))

        status = "populated" if records else "cleared"
        logger.info(
            "Table '%s' %s: %d rows deleted, %d rows written",
            label, status, deleted, len(records),
        )
        outcomes.append(TableOutcome(category=label, status=status, rows=len(records)))
    return outcomes
