"""Tests for opening and repackaging DOCX containers."""
from __future__ import annotations

import io
import zipfile

import pytest

from docx_builders import (
    ENTRY_ORDER,
    W_NS,
    body_root,
    build_docx,
    notice_body,
    read_entry,
)
from notice_template_engine.config.settings import Settings
from notice_template_engine.container import commit, open_document, read_container
from notice_template_engine.errors import ContainerError, ParseError


def _names(docx: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(docx)) as zf:
        return zf.namelist()


def _patch_headers(docx: bytes, local_offset: int, central_offset: int, update) -> bytes:
    """Rewrite a 2-byte field in every local and central directory header."""
    data = bytearray(docx)
    for signature, offset in ((b"PK\x03\x04", local_offset), (b"PK\x01\x02", central_offset)):
        start = data.find(signature)
        while start != -1:
            pos = start + offset
            value = int.from_bytes(data[pos:pos + 2], "little")
            data[pos:pos + 2] = update(value).to_bytes(2, "little")
            start = data.find(signature, start + 4)
    return bytes(data)


class TestOpenDocument:
    def test_garbage_bytes_raise_container_error(self) -> None:
        with pytest.raises(ContainerError) as excinfo:
            open_document(b"this is not a zip archive")
        assert excinfo.value.stage == "container"

    def test_missing_body_entry_raises_container_error(self) -> None:
        docx = build_docx("", skip=("word/document.xml",))
        with pytest.raises(ContainerError):
            open_document(docx)

    def test_malformed_body_raises_parse_error(self) -> None:
        docx = build_docx("", document="<w:document><w:body><w:p></w:body>")
        with pytest.raises(ParseError) as excinfo:
            open_document(docx)
        assert "ParseError" in excinfo.value.user_message()

    def test_encrypted_entries_raise_container_error(self) -> None:
        # general purpose flag bit 0 marks an entry as encrypted
        docx = _patch_headers(build_docx(notice_body()), 6, 8, lambda flags: flags | 0x1)
        with pytest.raises(ContainerError) as excinfo:
            open_document(docx)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_unsupported_compression_raises_container_error(self) -> None:
        docx = _patch_headers(build_docx(notice_body()), 8, 10, lambda method: 99)
        with pytest.raises(ContainerError) as excinfo:
            open_document(docx)
        assert isinstance(excinfo.value.__cause__, NotImplementedError)

    def test_body_entry_is_configurable(self) -> None:
        docx = build_docx("")
        with pytest.raises(ContainerError):
            open_document(docx, settings=Settings(body_entry="word/other.xml"))

    def test_keeps_original_root_start_tag(self) -> None:
        tree = open_document(build_docx(notice_body()))
        assert tree.root_start_tag.startswith("<w:document")
        assert 'mc:Ignorable="w14 wp14"' in tree.root_start_tag
        assert "xmlns:w14=" in tree.root_start_tag

    def test_body_property(self) -> None:
        tree = open_document(build_docx(notice_body()))
        assert tree.body.tag == f"{{{W_NS}}}body"


class TestCommit:
    def test_untouched_round_trip_preserves_structure(self) -> None:
        source = build_docx(notice_body())
        output = commit(open_document(source))

        before = [el.tag for el in body_root(source).iter()]
        after = [el.tag for el in body_root(output).iter()]
        assert after == before

    def test_other_entries_are_byte_identical_and_ordered(self) -> None:
        source = build_docx(notice_body())
        output = commit(open_document(source))

        assert _names(output) == list(ENTRY_ORDER)
        for name in ENTRY_ORDER:
            if name == "word/document.xml":
                continue
            assert read_entry(output, name) == read_entry(source, name)

    def test_compression_metadata_is_kept(self) -> None:
        source = build_docx(notice_body())
        output = commit(open_document(source))
        with zipfile.ZipFile(io.BytesIO(output)) as zf:
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())

    def test_read_container_keeps_every_entry(self) -> None:
        container = read_container(build_docx(notice_body()), "word/document.xml")
        assert [info.filename for info, _ in container.entries] == list(ENTRY_ORDER)
        with pytest.raises(KeyError):
            container.read("word/missing.xml")
