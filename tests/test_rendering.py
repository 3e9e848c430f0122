"""Tests for PDF rendering backends."""
from __future__ import annotations

import os
import subprocess

import httpx
import pytest

from notice_template_engine import rendering
from notice_template_engine.config.settings import Settings
from notice_template_engine.errors import RenderError
from notice_template_engine.rendering import render_pdf

CONVERTER_URL = "http://converter.local/forms/libreoffice/convert"


class TestSofficeBackend:
    def test_missing_binary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(rendering.shutil, "which", lambda name: None)
        with pytest.raises(RenderError) as excinfo:
            render_pdf(b"docx", settings=Settings(render_backend="soffice"))
        assert excinfo.value.stage == "render"

    def test_converts_in_temporary_directory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            outdir = cmd[cmd.index("--outdir") + 1]
            with open(os.path.join(outdir, "notice.pdf"), "wb") as f:
                f.write(b"%PDF-1.7 fake")
            return subprocess.CompletedProcess(cmd, 0)

        monkeypatch.setattr(rendering.shutil, "which", lambda name: "/usr/bin/soffice")
        monkeypatch.setattr(rendering.subprocess, "run", fake_run)

        pdf = render_pdf(b"docx", settings=Settings(render_backend="soffice", render_timeout=5))
        assert pdf == b"%PDF-1.7 fake"
        cmd, kwargs = calls[0]
        assert cmd[:2] == ["/usr/bin/soffice", "--headless"]
        assert kwargs["timeout"] == 5
        assert kwargs["check"] is True

    def test_failed_conversion(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(77, cmd)

        monkeypatch.setattr(rendering.shutil, "which", lambda name: "/usr/bin/soffice")
        monkeypatch.setattr(rendering.subprocess, "run", fake_run)
        with pytest.raises(RenderError, match="exit 77"):
            render_pdf(b"docx", settings=Settings(render_backend="soffice"))

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(rendering.shutil, "which", lambda name: "/usr/bin/soffice")
        monkeypatch.setattr(rendering.subprocess, "run", fake_run)
        with pytest.raises(RenderError, match="timed out"):
            render_pdf(b"docx", settings=Settings(render_backend="soffice"))

    def test_no_output_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(rendering.shutil, "which", lambda name: "/usr/bin/soffice")
        monkeypatch.setattr(
            rendering.subprocess, "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0),
        )
        with pytest.raises(RenderError, match="did not produce"):
            render_pdf(b"docx", settings=Settings(render_backend="soffice"))


class TestHttpBackend:
    def _settings(self) -> Settings:
        return Settings(render_backend="http", converter_url=CONVERTER_URL)

    def test_posts_docx_as_multipart(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.read()
            return httpx.Response(200, content=b"%PDF-1.7 remote")

        pdf = render_pdf(b"DOCXBYTES", settings=self._settings(), transport=httpx.MockTransport(handler))
        assert pdf == b"%PDF-1.7 remote"
        assert seen["url"] == CONVERTER_URL
        assert b'filename="notice.docx"' in seen["body"]
        assert b"DOCXBYTES" in seen["body"]

    def test_http_error_status(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        with pytest.raises(RenderError, match="HTTP 503"):
            render_pdf(b"docx", settings=self._settings(), transport=transport)

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RenderError, match="request failed"):
            render_pdf(b"docx", settings=self._settings(), transport=httpx.MockTransport(handler))

    def test_missing_url(self) -> None:
        with pytest.raises(RenderError, match="converter_url"):
            render_pdf(b"docx", settings=Settings(render_backend="http", converter_url=""))


def test_unknown_backend() -> None:
    with pytest.raises(RenderError, match="Unknown render_backend"):
        render_pdf(b"docx", settings=Settings(render_backend="fax"))
