"""Open a DOCX container into a mutable body tree and repackage it.

Every entry other than the body keeps its original bytes and ``ZipInfo``
metadata; entry order is preserved.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
from dataclasses import dataclass
from xml.etree import ElementTree as ET

from .config.settings import Settings, settings as default_settings
from .errors import ContainerError, ParseError
from .ooxml import qn, register_source_namespaces
from .serializer import finalize

logger = logging.getLogger(__name__)

# First start tag that is not a declaration, comment or processing instruction
_RE_ROOT_START = re.compile(r"<(?![?!])[^>]*>")


@dataclass
class DocumentContainer:
    """Ordered archive entry table of a DOCX package."""

    entries: list[tuple[zipfile.ZipInfo, bytes]]
    body_entry: str

    def read(self, name: str) -> bytes:
        for info, payload in self.entries:
            if info.filename == name:
                return payload
        raise KeyError(name)

    def replace(self, name: str, payload: bytes) -> None:
        for i, (info, _) in enumerate(self.entries):
            if info.filename == name:
                self.entries[i] = (info, payload)
                return
        raise KeyError(name)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as output_zip:
            for info, payload in self.entries:
                output_zip.writestr(info, payload)
        return buffer.getvalue()


@dataclass
class BodyTree:
    """Parsed body part, exclusively owned by one generation call."""

    root: ET.Element
    container: DocumentContainer
    root_start_tag: str = ""

    @property
    def body(self) -> ET.Element:
        body = self.root.find(qn("body"))
        return body if body is not None else self.root


def read_container(data: bytes, body_entry: str) -> DocumentContainer:
    """Read every archive entry into memory.

    Raises:
        ContainerError: If the archive is unreadable or has no body entry.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data), "r") as source_zip:
            entries = [
                (info, source_zip.read(info.filename))
                for info in source_zip.infolist()
            ]
    except (
        zipfile.BadZipFile, zlib.error, EOFError, OSError,
        RuntimeError, NotImplementedError,
    ) as e:
        raise ContainerError("document is not a readable DOCX archive") from e

    container = DocumentContainer(entries=entries, body_entry=body_entry)
    try:
        container.read(body_entry)
    except KeyError as e:
        raise ContainerError(f"archive has no body entry '{body_entry}'") from e
    return container


def open_document(data: bytes, settings: Settings | None = None) -> BodyTree:
    """Open DOCX bytes and parse the body entry.

    Args:
        data: Raw bytes of the template container.
        settings: Optional settings override.

    Returns:
        BodyTree owning the parsed root element and the container.

    Raises:
        ContainerError: Archive unreadable or body entry missing.
        ParseError: Body entry is not well-formed.
    """
    settings = settings or default_settings
    container = read_container(data, settings.body_entry)
    body_bytes = container.read(settings.body_entry)

    try:
        register_source_namespaces(body_bytes)
        root = ET.fromstring(body_bytes)
    except ET.ParseError as e:
        raise ParseError(f"'{settings.body_entry}' is not well-formed XML") from e

    source_text = body_bytes.decode("utf-8", errors="replace")
    match = _RE_ROOT_START.search(source_text)
    root_start_tag = match.group(0) if match else ""

    logger.info(
        "Opened container: %d entries, body %s (%d bytes)",
        len(container.entries), settings.body_entry, len(body_bytes),
    )
    return BodyTree(
        root=root,
        container=container,
        root_start_tag=root_start_tag,
    )


def commit(tree: BodyTree) -> bytes:
    """Finalize the body tree and repackage the container to bytes.

    Raises:
        SerializationError: If the tree cannot be serialized.
        ContainerError: If the archive cannot be rebuilt.
    """
    document_xml = finalize(tree)
    container = tree.container
    container.replace(container.body_entry, document_xml.encode("utf-8"))

    try:
        output = container.to_bytes()
    except (ValueError, OSError, zlib.error) as e:
        raise ContainerError("failed to repackage the document") from e

    logger.info("Committed container (%d bytes)", len(output))
    return output
