"""One generation request: open, substitute, synthesize, commit, render."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Mapping, Sequence

from .config.settings import Settings, settings as default_settings
from .container import BodyTree, commit, open_document
from .errors import SerializationError
from .indexer import build_index
from .records import RecordRow
from .rendering import DOCX_MIME, render_pdf
from .rules import DEFAULT_TABLE_RULES, CategoryTableRule
from .substitution import FieldSubstitution, apply_substitutions
from .tables import TableOutcome, synthesize
from .validation import validate_container

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = {
    "docx": (DOCX_MIME, ".docx"),
    "pdf": ("application/pdf", ".pdf"),
}


@dataclass
class MutationReport:
    applied_substitutions: list[str] = field(default_factory=list)
    missed_substitutions: list[str] = field(default_factory=list)
    tables: list[TableOutcome] = field(default_factory=list)
    warnings: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GenerationResult:
    content: bytes
    media_type: str
    extension: str
    report: MutationReport


def mutate(
    tree: BodyTree,
    substitutions: Sequence[FieldSubstitution],
    bindings: Mapping[str, Sequence[RecordRow]],
    rules: Mapping[str, CategoryTableRule],
    settings: Settings | None = None,
) -> MutationReport:
    """Apply substitutions, then table synthesis, to one body tree.

    The text index is built once, before any edit; substitutions run
    against that snapshot and tables are located afterwards on the edited
    tree.
    """
    index = build_index(tree)
    outcome = apply_substitutions(index, list(substitutions))
    tables = synthesize(tree, bindings, rules, settings=settings)
    return MutationReport(
        applied_substitutions=outcome.applied,
        missed_substitutions=outcome.missed,
        tables=tables,
    )


def generate_notice(
    template: bytes,
    substitutions: Sequence[FieldSubstitution] = (),
    bindings: Mapping[str, Sequence[RecordRow]] | None = None,
    rules: Mapping[str, CategoryTableRule] | None = None,
    output_format: str = "docx",
    settings: Settings | None = None,
) -> GenerationResult:
    """Generate a notice document from a template container.

    Args:
        template: Raw bytes of the DOCX template.
        substitutions: Ordered field substitutions.
        bindings: Category label -> ordered records.
        rules: Category label -> table rule (default: the auction categories).
        output_format: "docx" or "pdf".
        settings: Optional settings override.

    Returns:
        GenerationResult with output bytes and the mutation report.

    Raises:
        EngineError: Container, parse, overlap, serialization or render failure.
    """
    settings = settings or default_settings
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {output_format}")
    if rules is None:
        rules = DEFAULT_TABLE_RULES

    tree = open_document(template, settings=settings)
    report = mutate(tree, substitutions, bindings or {}, rules, settings=settings)
    docx_bytes = commit(tree)

    validation = validate_container(docx_bytes, body_entry=settings.body_entry)
    if not validation.valid:
        for issue in validation.errors:
            logger.error("Validation: %s", issue["message"])
        raise SerializationError(
            "generated document failed validation: "
            + "; ".join(issue["message"] for issue in validation.errors)
        )
    report.warnings.extend(validation.warnings)

    media_type, extension = OUTPUT_FORMATS[output_format]
    content = docx_bytes if output_format == "docx" else render_pdf(docx_bytes, settings=settings)
    logger.info(
        "Generated %s: %d substitutions applied, %d missed, %d tables",
        output_format, len(report.applied_substitutions),
        len(report.missed_substitutions), len(report.tables),
    )
    return GenerationResult(
        content=content, media_type=media_type, extension=extension, report=report,
    )
