"""Surgical replacement of located phrases across fragmented runs.

Each substitution carries a tolerant pattern built from a literal phrase an
external extractor found in the template. Only the first match is replaced.
Matches are all computed against the same snapshot of the virtual text, so
the result does not depend on the order substitutions are listed in.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .errors import OverlappingSubstitutionError
from .indexer import TextIndex
from .ooxml import SPACE_ATTR
from .utils import clean_xml_text

logger = logging.getLogger(__name__)

# Whitespace, NBSP, line breaks, en/em dash and hyphen are interchangeable
_SEPARATOR_CLASS = r"[\s\u00A0\r\n\u2013\u2014\-]"
_RE_SEPARATORS = re.compile(_SEPARATOR_CLASS + "+")


def build_tolerant_pattern(literal: str) -> re.Pattern:
    """Compile a case-insensitive pattern tolerant to re-flowed separators.

    Every run of separator characters in the literal matches zero or more
    separators in the document, since the phrase may have been re-flowed
    after it was located.

    >>> bool(build_tolerant_pattern("ANEXO I – DO EDITAL").search("ANEXO I - DO\\u00a0EDITAL"))
    True
    """
    pieces = [re.escape(piece) for piece in _RE_SEPARATORS.split(literal) if piece]
    return re.compile((_SEPARATOR_CLASS + "*").join(pieces), re.IGNORECASE)


@dataclass
class FieldSubstitution:
    id: str
    pattern: re.Pattern
    replacement: str

    @classmethod
    def from_literal(cls, id: str, found_text: str, replacement: str) -> "FieldSubstitution":
        return cls(id=id, pattern=build_tolerant_pattern(found_text), replacement=replacement)


@dataclass
class PlannedEdit:
    substitution: FieldSubstitution
    start: int
    end: int


@dataclass
class SubstitutionOutcome:
    applied: list[str] = field(default_factory=list)
    missed: list[str] = field(default_factory=list)


def plan_substitutions(
    index: TextIndex,
    substitutions: list[FieldSubstitution],
) -> tuple[list[PlannedEdit], list[str]]:
    """Find the first match of every substitution in the snapshot.

    Returns:
        Tuple of (planned edits sorted by start offset, ids that missed).

    Raises:
        OverlappingSubstitutionError: If two matched ranges overlap.
    """
    planned: list[PlannedEdit] = []
    missed: list[str] = []
    for sub in substitutions:
        match = sub.pattern.search(index.virtual_text)
        if match is None or match.end() == match.start():
            logger.warning("Substitution '%s' not found in template", sub.id)
            missed.append(sub.id)
            continue
        planned.append(PlannedEdit(substitution=sub, start=match.start(), end=match.end()))

    planned.sort(key=lambda edit: edit.start)
    for previous, current in zip(planned, planned[1:]):
        if current.start < previous.end:
            raise OverlappingSubstitutionError(
                previous.substitution.id, current.substitution.id,
            )
    return planned, missed


def _apply_edit(index: TextIndex, edit: PlannedEdit) -> None:
    """Rewrite exactly the leaves spanned by one planned edit."""
    replacement = clean_xml_text(edit.substitution.replacement)
    first = True
    for span in index.overlapping(edit.start, edit.end):
        # Offsets before the edit point are still valid: edits run right to left
        text = span.node.text or ""
        if first:
            prefix = text[: edit.start - span.start]
            suffix = text[edit.end - span.start:] if span.end > edit.end else ""
            span.node.text = prefix + replacement + suffix
            span.node.set(SPACE_ATTR, "preserve")
            first = False
        elif span.end > edit.end:
            span.node.text = text[edit.end - span.start:]
            span.node.set(SPACE_ATTR, "preserve")
        else:
            span.node.text = ""
        logger.debug(
            "Substitution '%s' rewrote leaf [%d, %d)",
            edit.substitution.id, span.start, span.end,
        )


def apply_substitutions(
    index: TextIndex,
    substitutions: list[FieldSubstitution],
) -> SubstitutionOutcome:
    """Apply every substitution's first match to the indexed tree in place.

    Args:
        index: Index built from the tree before any substitution.
        substitutions: Ordered substitutions; misses are skipped.

    Returns:
        SubstitutionOutcome listing applied and missed ids.

    Raises:
        OverlappingSubstitutionError: Before any leaf is touched.
    """
    planned, missed = plan_substitutions(index, substitutions)
    for edit in reversed(planned):
        _apply_edit(index, edit)

    applied_ids = {edit.substitution.id for edit in planned}
    outcome = SubstitutionOutcome(
        applied=[sub.id for sub in substitutions if sub.id in applied_ids],
        missed=missed,
    )
    logger.info(
        "Substitutions: %d applied, %d missed",
        len(outcome.applied), len(outcome.missed),
    )
    return outcome
