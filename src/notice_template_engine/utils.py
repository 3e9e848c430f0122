"""Logging setup and text helpers shared across the engine."""

import logging
import re
import sys
import unicodedata
from typing import Any, Optional

from .config.settings import settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(
    level: int | None = None,
    format_string: Optional[str] = None,
) -> None:
    """Set up global logging configuration.

    Args:
        level: Logging level override (default: from settings.log_level)
        format_string: Custom format string (optional)
    """
    if level is None:
        level = LOG_LEVEL_MAP.get(settings.log_level.upper(), logging.INFO)

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------

# Characters outside the XML 1.0 Char production
_RE_XML_ILLEGAL = re.compile(
    r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)
_RE_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def super_normalize(text: Any) -> str:
    """Strip diacritics, uppercase and drop every non-alphanumeric character.

    Used to compare category labels against heading paragraphs where the
    authoring tool may have changed accents, spacing or punctuation.

    >>> super_normalize("Alienação Antecipada - Outros Crimes")
    'ALIENACAOANTECIPADAOUTROSCRIMES'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _RE_NON_ALNUM.sub("", stripped.upper())


def normalize_plate(plate: Any) -> str:
    """Uppercase a vehicle plate and keep only ASCII letters and digits."""
    if not plate:
        return ""
    return _RE_NON_ALNUM.sub("", str(plate).upper())


def clean_xml_text(text: Any) -> str:
    """Remove control characters that are illegal in XML 1.0."""
    if text is None:
        return ""
    return _RE_XML_ILLEGAL.sub("", str(text))


def format_currency(value: Any) -> str:
    """Format a number as Brazilian reais, e.g. ``R$ 1.234,56``.

    Non-numeric input formats as zero.
    """
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        number = 0.0
    grouped = f"{number:,.2f}"
    # 1,234.56 -> 1.234,56
    return "R$ " + grouped.replace(",", "_").replace(".", ",").replace("_", ".")


def escape_xml(text: Any) -> str:
    """Scrub illegal characters and escape XML reserved characters."""
    return (
        clean_xml_text(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )
