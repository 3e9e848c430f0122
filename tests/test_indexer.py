"""Tests for the virtual text index."""
from __future__ import annotations

from xml.etree import ElementTree as ET

from docx_builders import W_NS, build_docx, notice_body, para
from notice_template_engine.container import open_document
from notice_template_engine.indexer import build_index


def _fragment(body: str) -> ET.Element:
    return ET.fromstring(f'<w:body xmlns:w="{W_NS}">{body}</w:body>')


class TestBuildIndex:
    def test_virtual_text_concatenates_leaves_in_order(self) -> None:
        index = build_index(_fragment(para("AN", "EX", "O I") + para(" - DO EDITAL")))
        assert index.virtual_text == "ANEXO I - DO EDITAL"
        assert [span.node.text for span in index.spans] == ["AN", "EX", "O I", " - DO EDITAL"]

    def test_spans_are_contiguous_and_cover_text(self) -> None:
        tree = open_document(build_docx(notice_body()))
        index = build_index(tree)

        assert index.spans[0].start == 0
        for previous, current in zip(index.spans, index.spans[1:]):
            assert current.start == previous.end
        assert index.spans[-1].end == len(index.virtual_text)
        for span in index.spans:
            assert index.virtual_text[span.start:span.end] == (span.node.text or "")

    def test_one_span_per_text_leaf(self) -> None:
        tree = open_document(build_docx(notice_body()))
        leaves = list(tree.root.iter(f"{{{W_NS}}}t"))
        assert len(build_index(tree).spans) == len(leaves)

    def test_field_code_text_is_not_indexed(self) -> None:
        body = (
            "<w:p><w:r><w:instrText>PAGE</w:instrText></w:r>"
            "<w:r><w:t>visible</w:t></w:r></w:p>"
        )
        index = build_index(_fragment(body))
        assert index.virtual_text == "visible"

    def test_empty_leaf_gets_zero_width_span(self) -> None:
        body = "<w:p><w:r><w:t/></w:r><w:r><w:t>abc</w:t></w:r></w:p>"
        index = build_index(_fragment(body))
        assert [(s.start, s.end) for s in index.spans] == [(0, 0), (0, 3)]

    def test_overlapping_returns_only_intersecting_spans(self) -> None:
        index = build_index(_fragment(para("AN", "EX", "O I")))
        hits = list(index.overlapping(1, 3))
        assert [span.node.text for span in hits] == ["AN", "EX"]
