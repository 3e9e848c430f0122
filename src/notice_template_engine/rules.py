"""Category table rules and rules profiles.

A rules profile is a Markdown file whose YAML frontmatter lists the
categories the template carries tables for::

    ---
    categories:
      - label: "ALIENAÇÃO ANTECIPADA - OUTROS CRIMES"
        remove_when_empty: true
    ---
    Free-form notes for whoever maintains the template.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import frontmatter

from .errors import JobError

logger = logging.getLogger(__name__)


@dataclass
class CategoryTableRule:
    label: str
    remove_when_empty: bool = False


DEFAULT_TABLE_RULES: dict[str, CategoryTableRule] = {
    label: CategoryTableRule(label=label)
    for label in (
        "ALIENAÇÃO DEFINITIVA - TRÁFICO DE DROGAS",
        "ALIENAÇÃO ANTECIPADA - TRÁFICO DE DROGAS",
        "ALIENAÇÃO ANTECIPADA - OUTROS CRIMES",
    )
}


def rule_from_mapping(label: str, raw) -> CategoryTableRule:
    """Build a rule from a job or profile entry.

    Accepts a bare boolean or a mapping with ``remove_when_empty`` or the
    settings-editor key ``removeIfEmpty``.
    """
    if isinstance(raw, bool):
        return CategoryTableRule(label=label, remove_when_empty=raw)
    raw = raw or {}
    remove = raw.get("remove_when_empty", raw.get("removeIfEmpty", False))
    return CategoryTableRule(label=label, remove_when_empty=bool(remove))


def load_rules_profile(path: str) -> dict[str, CategoryTableRule]:
    """Load category rules from a Markdown file with YAML frontmatter.

    Args:
        path: Path to the profile file.

    Returns:
        Ordered mapping of category label -> rule.

    Raises:
        JobError: If the file is missing or its frontmatter is malformed.
    """
    if not os.path.isfile(path):
        raise JobError(f"rules profile not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            post = frontmatter.load(f)
    except Exception as e:
        raise JobError(f"cannot read rules profile {path}") from e

    categories = post.get("categories") or []
    if not isinstance(categories, list):
        raise JobError(f"'categories' in {path} must be a list")

    rules: dict[str, CategoryTableRule] = {}
    for entry in categories:
        if isinstance(entry, str):
            entry = {"label": entry}
        label = (entry or {}).get("label")
        if not label:
            raise JobError(f"category without label in {path}")
        rules[label] = rule_from_mapping(label, entry)

    logger.info("Loaded %d category rules from %s", len(rules), path)
    return rules
