"""Auction lot records bound to category tables."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .utils import normalize_plate

logger = logging.getLogger(__name__)

# 10.000 or 1.250.000: dots group thousands
_RE_DOT_THOUSANDS = re.compile(r"-?\d{1,3}(?:\.\d{3})+")


class RecordRow(BaseModel):
    """One output row of a category table.

    Field names follow the engine's English vocabulary; the Portuguese keys
    produced by the extraction step (``placa``, ``lote``, ...) are accepted
    as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lot: str = Field("", validation_alias=AliasChoices("lot", "lote"))
    plate: str = Field("", validation_alias=AliasChoices("plate", "placa"))
    description: str = Field("", validation_alias=AliasChoices("description", "descricaoObjeto"))
    condition: str = Field("", validation_alias=AliasChoices("condition", "condicoes"))
    appraisal_value: float = Field(0.0, validation_alias=AliasChoices("appraisal_value", "valorAvaliacao"))
    initial_bid: Optional[float] = Field(None, validation_alias=AliasChoices("initial_bid", "lanceInicial"))
    increment: float = Field(0.0, validation_alias=AliasChoices("increment", "incremento"))
    closing_time: str = Field("", validation_alias=AliasChoices("closing_time", "horarioEncerramento"))
    visitation_location: str = Field("", validation_alias=AliasChoices("visitation_location", "localVisitacao"))
    visitation_period: str = Field("", validation_alias=AliasChoices("visitation_period", "periodoVisitacao"))
    visitation_hours: str = Field("", validation_alias=AliasChoices("visitation_hours", "horarioVisitacao"))
    scheduling_contact: str = Field("", validation_alias=AliasChoices("scheduling_contact", "contatoAgendamento"))
    category: str = Field("", validation_alias=AliasChoices("category", "tipoOS"))

    @field_validator(
        "lot", "plate", "description", "condition", "closing_time",
        "visitation_location", "visitation_period", "visitation_hours",
        "scheduling_contact", "category",
        mode="before",
    )
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)

    @field_validator("appraisal_value", "increment", mode="before")
    @classmethod
    def _number(cls, value):
        return _to_number(value)

    @field_validator("initial_bid", mode="before")
    @classmethod
    def _optional_number(cls, value):
        if value is None or value == "":
            return None
        return _to_number(value)

    @property
    def normalized_plate(self) -> str:
        return normalize_plate(self.plate)

    def resolved_initial_bid(self, category: str | None = None) -> float:
        """Explicit initial bid, or the category rate applied to the appraisal."""
        if self.initial_bid is not None:
            return self.initial_bid
        return calculate_initial_bid(self.appraisal_value, category or self.category)


def _to_number(value) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace("R$", "").strip()
    # 1.234,56 -> 1234.56
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    elif _RE_DOT_THOUSANDS.fullmatch(text):
        text = text.replace(".", "")
    try:
        return float(text)
    except ValueError:
        return 0.0


def calculate_initial_bid(value, category: str) -> float:
    """Initial bid for a lot: a category-dependent share of its appraisal.

    80% for early sales of other crimes, 50% for early sales tied to drug
    trafficking, 80% for definitive drug-trafficking sales, full value
    otherwise.
    """
    number = _to_number(value)
    cat = (category or "").upper()
    if "ANTECIPADA" in cat and "OUTROS" in cat:
        return number * 0.8
    if "ANTECIPADA" in cat and "TRÁFICO" in cat:
        return number * 0.5
    if "DEFINITIVA" in cat and "TRÁFICO" in cat:
        return number * 0.8
    return number


def group_records(
    records: Iterable[RecordRow],
    categories: Iterable[str],
) -> dict[str, list[RecordRow]]:
    """Bind records to categories by case-insensitive label equality.

    Every category is present in the result, possibly with an empty list.
    Records whose category matches none of them are dropped with a warning.
    """
    labels = list(categories)
    by_upper = {label.upper(): label for label in labels}
    bound: dict[str, list[RecordRow]] = {label: [] for label in labels}
    for record in records:
        label = by_upper.get(record.category.upper())
        if label is None:
            logger.warning(
                "Record %s has unknown category '%s'",
                record.normalized_plate or record.lot, record.category,
            )
            continue
        bound[label].append(record)
    return bound
