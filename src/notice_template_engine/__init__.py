"""Auction notice template engine.

Fills a DOCX notice template in place: located phrases are replaced even
when Word split them across runs, and each auction category's lot table is
regenerated from its records or removed.
"""

from .container import BodyTree, commit, open_document
from .errors import (
    ContainerError,
    EngineError,
    JobError,
    OverlappingSubstitutionError,
    ParseError,
    RenderError,
    SerializationError,
)
from .indexer import TextIndex, TextSpan, build_index
from .pipeline import GenerationResult, MutationReport, generate_notice, mutate
from .records import RecordRow, calculate_initial_bid, group_records
from .rules import DEFAULT_TABLE_RULES, CategoryTableRule, load_rules_profile
from .serializer import finalize
from .substitution import FieldSubstitution, apply_substitutions, build_tolerant_pattern
from .tables import TableLocation, find_category_block, synthesize

__all__ = [
    "BodyTree",
    "CategoryTableRule",
    "ContainerError",
    "DEFAULT_TABLE_RULES",
    "EngineError",
    "FieldSubstitution",
    "GenerationResult",
    "JobError",
    "MutationReport",
    "OverlappingSubstitutionError",
    "ParseError",
    "RecordRow",
    "RenderError",
    "SerializationError",
    "TableLocation",
    "TextIndex",
    "TextSpan",
    "apply_substitutions",
    "build_index",
    "build_tolerant_pattern",
    "calculate_initial_bid",
    "commit",
    "finalize",
    "find_category_block",
    "generate_notice",
    "group_records",
    "load_rules_profile",
    "mutate",
    "open_document",
    "synthesize",
]
