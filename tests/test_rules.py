"""Tests for category rules, rules profiles and job files."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from docx_builders import DEFINITIVA, OUTROS
from notice_template_engine.errors import JobError
from notice_template_engine.jobs import load_job
from notice_template_engine.rules import (
    DEFAULT_TABLE_RULES,
    CategoryTableRule,
    load_rules_profile,
    rule_from_mapping,
)

PROFILE = f"""\
---
categories:
  - label: "{OUTROS}"
    remove_when_empty: true
  - label: "{DEFINITIVA}"
    removeIfEmpty: false
  - "ALIENAÇÃO ANTECIPADA - TRÁFICO DE DROGAS"
---
Tabelas do edital padrão de veículos.
"""


class TestRules:
    def test_defaults_keep_empty_tables(self) -> None:
        assert len(DEFAULT_TABLE_RULES) == 3
        assert not any(rule.remove_when_empty for rule in DEFAULT_TABLE_RULES.values())

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (True, True),
            ({"removeIfEmpty": True}, True),
            ({"remove_when_empty": False}, False),
            (None, False),
        ],
    )
    def test_rule_from_mapping(self, raw, expected: bool) -> None:
        assert rule_from_mapping(OUTROS, raw) == CategoryTableRule(OUTROS, expected)

    def test_load_profile(self, tmp_path: Path) -> None:
        path = tmp_path / "veiculos.md"
        path.write_text(PROFILE, encoding="utf-8")

        rules = load_rules_profile(str(path))
        assert list(rules) == [OUTROS, DEFINITIVA, "ALIENAÇÃO ANTECIPADA - TRÁFICO DE DROGAS"]
        assert rules[OUTROS].remove_when_empty is True
        assert rules[DEFINITIVA].remove_when_empty is False

    def test_missing_profile(self, tmp_path: Path) -> None:
        with pytest.raises(JobError):
            load_rules_profile(str(tmp_path / "nope.md"))

    def test_categories_must_be_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.md"
        path.write_text("---\ncategories: OUTROS\n---\n", encoding="utf-8")
        with pytest.raises(JobError):
            load_rules_profile(str(path))

    def test_category_needs_label(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.md"
        path.write_text("---\ncategories:\n  - remove_when_empty: true\n---\n", encoding="utf-8")
        with pytest.raises(JobError):
            load_rules_profile(str(path))


class TestLoadJob:
    def test_parses_substitutions_records_and_rules(self, tmp_path: Path) -> None:
        path = tmp_path / "job.json"
        path.write_text(json.dumps({
            "substitutions": [
                {"id": "meta2", "foundText": "EDITAL Nº 001/2024", "newValue": "EDITAL Nº 03/2025"},
            ],
            "records": [
                {"placa": "abc-1d23", "valorAvaliacao": 1000, "tipoOS": OUTROS},
                {"placa": "xyz-9a88", "tipoOS": "DESCONHECIDA"},
            ],
            "tableRules": {OUTROS: {"removeIfEmpty": True}},
        }), encoding="utf-8")

        job = load_job(str(path))
        subs = job.field_substitutions()
        assert subs[0].id == "meta2"
        assert subs[0].pattern.search("edital nº 001/2024")

        rules = job.category_rules()
        assert rules == {OUTROS: CategoryTableRule(OUTROS, True)}
        bound = job.bindings(rules)
        assert [r.normalized_plate for r in bound[OUTROS]] == ["ABC1D23"]

    def test_rules_absent(self, tmp_path: Path) -> None:
        path = tmp_path / "job.json"
        path.write_text("{}", encoding="utf-8")
        assert load_job(str(path)).category_rules() is None

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "job.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(JobError) as excinfo:
            load_job(str(path))
        assert excinfo.value.user_message().startswith("job: ")

    def test_invalid_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"substitutions": [{"id": "x"}]}), encoding="utf-8")
        with pytest.raises(JobError):
            load_job(str(path))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(JobError):
            load_job(str(tmp_path / "missing.json"))
