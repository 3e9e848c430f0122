"""Serialize a mutated body tree back to document XML.

ElementTree rewrites the root start tag with only the namespaces it saw in
use, which drops prefixes referenced solely from ``mc:Ignorable`` and
breaks strict consumers. The serializer's own root start tag is kept and
every prefixed declaration of the source root it lacks is merged in;
repeated declarations inside later start tags are stripped.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from .errors import SerializationError
from .ooxml import W_NS

if TYPE_CHECKING:
    from .container import BodyTree

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

_RE_START_TAG = re.compile(r"<(?![?!/])[^>]*>")
_RE_XMLNS = re.compile(r'\sxmlns:([A-Za-z_][\w.\-]*)="([^"]*)"')


def _declarations(start_tag: str) -> dict[str, str]:
    return {prefix: uri for prefix, uri in _RE_XMLNS.findall(start_tag)}


def _merge_root_start_tag(source: str, serialized: str) -> str:
    """Serializer's root start tag plus source declarations it dropped.

    Only ``xmlns:prefix`` declarations are taken from the source; the
    element name and every other attribute stay as serialized, so a source
    written with a default namespace still closes with the same name.
    """
    if not source:
        return serialized
    known = _declarations(serialized)
    missing = "".join(
        f' xmlns:{prefix}="{uri}"'
        for prefix, uri in _declarations(source).items()
        if prefix not in known
    )
    if not missing:
        return serialized
    if serialized.endswith("/>"):
        return serialized[:-2] + missing + "/>"
    return serialized[:-1] + missing + ">"


def strip_redundant_namespace_declarations(xml_text: str) -> str:
    """Keep each root-level namespace declaration once.

    Declarations of the primary ``w`` namespace are always reduced to the
    first root-level occurrence; any other declaration repeating a prefix
    and URI already declared on the root is removed as well. Only start
    tags are rewritten, never text content.

    Args:
        xml_text: Serialized document without XML declaration.

    Returns:
        The same document with redundant declarations removed.
    """
    root_match = _RE_START_TAG.search(xml_text)
    if root_match is None:
        return xml_text

    root_decls = _declarations(root_match.group(0))
    root_decls.setdefault("w", W_NS)
    removed = 0

    def _strip_declaration(match: re.Match) -> str:
        nonlocal removed
        prefix, uri = match.group(1), match.group(2)
        if root_decls.get(prefix) == uri:
            removed += 1
            return ""
        return match.group(0)

    def _strip_tag(match: re.Match) -> str:
        return _RE_XMLNS.sub(_strip_declaration, match.group(0))

    head = xml_text[: root_match.end()]
    tail = _RE_START_TAG.sub(_strip_tag, xml_text[root_match.end():])
    if removed:
        logger.debug("Stripped %d redundant namespace declarations", removed)
    return head + tail


def finalize(tree: BodyTree) -> str:
    """Serialize the tree into document XML text with a standard declaration.

    Raises:
        SerializationError: If ElementTree cannot serialize the tree.
    """
    try:
        serialized = ET.tostring(tree.root, encoding="unicode")
    except (TypeError, ValueError) as e:
        raise SerializationError("body tree cannot be serialized") from e

    start = _RE_START_TAG.search(serialized)
    if start is None:
        raise SerializationError("serialized body has no root element")

    root_tag = _merge_root_start_tag(tree.root_start_tag, start.group(0))
    document = serialized[: start.start()] + root_tag + serialized[start.end():]

    document = strip_redundant_namespace_declarations(document)
    return XML_DECLARATION + document
