"""Generation job files consumed by the command line.

A job is the JSON an orchestrator hands over once every field value and
record has been resolved::

    {
      "substitutions": [
        {"id": "meta2", "foundText": "EDITAL Nº 001/2024", "newValue": "EDITAL Nº 03/2025"}
      ],
      "records": [
        {"placa": "abc-1d23", "lote": "1", "valorAvaliacao": 10000,
         "tipoOS": "ALIENAÇÃO ANTECIPADA - OUTROS CRIMES"}
      ],
      "tableRules": {
        "ALIENAÇÃO ANTECIPADA - OUTROS CRIMES": {"removeIfEmpty": true}
      }
    }
"""

from __future__ import annotations

import json
import os
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import JobError
from .records import RecordRow, group_records
from .rules import CategoryTableRule, rule_from_mapping
from .substitution import FieldSubstitution


class SubstitutionSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    found_text: str = Field(validation_alias=AliasChoices("found_text", "foundText"))
    new_value: str = Field(validation_alias=AliasChoices("new_value", "newValue"))

    def to_substitution(self) -> FieldSubstitution:
        return FieldSubstitution.from_literal(self.id, self.found_text, self.new_value)


class GenerationJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    substitutions: list[SubstitutionSpec] = Field(default_factory=list)
    records: list[RecordRow] = Field(default_factory=list)
    table_rules: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("table_rules", "tableRules"),
    )

    def field_substitutions(self) -> list[FieldSubstitution]:
        return [spec.to_substitution() for spec in self.substitutions]

    def category_rules(self) -> dict[str, CategoryTableRule] | None:
        if self.table_rules is None:
            return None
        return {
            label: rule_from_mapping(label, raw)
            for label, raw in self.table_rules.items()
        }

    def bindings(self, categories) -> dict[str, list[RecordRow]]:
        return group_records(self.records, categories)


def load_job(path: str) -> GenerationJob:
    """Load and validate a job file.

    Raises:
        JobError: If the file is missing, not JSON, or fails validation.
    """
    if not os.path.isfile(path):
        raise JobError(f"job file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return GenerationJob.model_validate(raw)
    except json.JSONDecodeError as e:
        raise JobError(f"job file is not valid JSON: {path}") from e
    except ValidationError as e:
        raise JobError(f"job file failed validation: {path}") from e
