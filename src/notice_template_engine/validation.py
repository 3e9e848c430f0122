"""Post-commit validation of a generated DOCX container.

Checks ZIP integrity, required entries, XML well-formedness, document
structure and namespace prefix pollution.
"""

from __future__ import annotations

import io
import re
import zipfile
import zlib
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from .ooxml import qn

REQUIRED_ENTRIES = ("[Content_Types].xml",)

_RE_AUTO_NS = re.compile(r"\bns\d+:")


@dataclass
class ValidationResult:
    errors: list[dict] = field(default_factory=list)
    warnings: list[dict] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": self.errors, "warnings": self.warnings}


def _err(check, msg):
    return {"check": check, "level": "error", "message": msg}


def _warn(check, msg):
    return {"check": check, "level": "warning", "message": msg}


def _read_entry(zf, name):
    """Read a ZIP entry as UTF-8 string, falling back to latin-1."""
    raw = zf.read(name)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


# -------------------------------------------------------------------
# Individual validators
# -------------------------------------------------------------------

def validate_entries(zf, body_entry):
    """Check that the package manifest and the body entry exist."""
    names = set(zf.namelist())
    return [
        _err("entries", f"Missing required entry: {req}")
        for req in (*REQUIRED_ENTRIES, body_entry)
        if req not in names
    ]


def validate_xml(zf):
    """Parse every .xml entry to ensure well-formedness."""
    issues = []
    for name in zf.namelist():
        if not name.endswith(".xml"):
            continue
        try:
            ET.fromstring(zf.read(name))
        except ET.ParseError as e:
            issues.append(_err("xml", f"{name}: {e}"))
    return issues


def validate_structure(zf, body_entry):
    """Verify the body has a w:document root and a w:body child."""
    if body_entry not in zf.namelist():
        return []
    try:
        root = ET.fromstring(zf.read(body_entry))
    except ET.ParseError:
        return []  # Already reported by validate_xml

    issues = []
    if root.tag != qn("document"):
        issues.append(_err("structure", f"Root element is '{root.tag}', expected w:document"))
    if root.find(qn("body")) is None:
        issues.append(_err("structure", "w:body element not found"))
    return issues


def validate_namespaces(zf, body_entry):
    """Detect auto-generated namespace prefixes (ns0:, ns1:, ...)."""
    if body_entry not in zf.namelist():
        return []
    matches = _RE_AUTO_NS.findall(_read_entry(zf, body_entry))
    if not matches:
        return []
    unique = sorted(set(matches))
    return [_warn(
        "namespace",
        f"Auto-generated namespace prefixes found: {', '.join(unique)} "
        f"({len(matches)} occurrences)",
    )]


# -------------------------------------------------------------------
# Orchestrator
# -------------------------------------------------------------------

def validate_container(data: bytes, body_entry: str = "word/document.xml") -> ValidationResult:
    """Run all validations on DOCX bytes and return a structured result."""
    result = ValidationResult()
    try:
        zf = zipfile.ZipFile(io.BytesIO(data), "r")
    except zipfile.BadZipFile as e:
        result.errors.append(_err("zip", f"Invalid ZIP: {e}"))
        return result

    with zf:
        try:
            bad = zf.testzip()
        except (RuntimeError, NotImplementedError, zlib.error) as e:
            result.errors.append(_err("zip", f"Unreadable ZIP entry: {e}"))
            return result
        if bad is not None:
            result.errors.append(_err("zip", f"Corrupt ZIP entry: {bad}"))
            return result

        checks = (
            validate_entries(zf, body_entry),
            validate_xml(zf),
            validate_structure(zf, body_entry),
            validate_namespaces(zf, body_entry),
        )
        for issues in checks:
            for issue in issues:
                if issue["level"] == "error":
                    result.errors.append(issue)
                else:
                    result.warnings.append(issue)
    return result
