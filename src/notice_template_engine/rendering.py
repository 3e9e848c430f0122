"""Render a finished DOCX into PDF through an external converter.

Two backends:

- ``soffice``: LibreOffice headless, run in a temporary directory.
- ``http``: multipart POST to a Gotenberg-style conversion endpoint.

Rendering never feeds back into the mutation; it only consumes the bytes
produced by :func:`notice_template_engine.container.commit`.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile

import httpx

from .config.settings import Settings, settings as default_settings
from .errors import RenderError

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _render_with_soffice(docx_bytes: bytes, settings: Settings) -> bytes:
    binary = shutil.which(settings.soffice_binary)
    if binary is None:
        raise RenderError(f"LibreOffice binary not available: {settings.soffice_binary}")

    with tempfile.TemporaryDirectory(prefix="notice-render-") as tmp:
        docx_path = os.path.join(tmp, "notice.docx")
        with open(docx_path, "wb") as f:
            f.write(docx_bytes)

        try:
            subprocess.run(
                [
                    binary, "--headless", "--norestore",
                    "--convert-to", "pdf",
                    "--outdir", tmp,
                    docx_path,
                ],
                check=True,
                capture_output=True,
                timeout=settings.render_timeout,
            )
        except subprocess.CalledProcessError as e:
            raise RenderError(
                f"LibreOffice conversion failed (exit {e.returncode})"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise RenderError(
                f"LibreOffice conversion timed out after {settings.render_timeout}s"
            ) from e

        # LibreOffice names output after the input file
        pdf_path = os.path.join(tmp, "notice.pdf")
        if not os.path.exists(pdf_path):
            raise RenderError("LibreOffice did not produce output PDF")
        with open(pdf_path, "rb") as f:
            return f.read()


def _render_with_http(
    docx_bytes: bytes,
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> bytes:
    if not settings.converter_url:
        raise RenderError("converter_url is not configured")

    try:
        with httpx.Client(timeout=settings.render_timeout, transport=transport) as client:
            resp = client.post(
                settings.converter_url,
                files={"files": ("notice.docx", docx_bytes, DOCX_MIME)},
            )
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise RenderError(f"HTTP {e.response.status_code} from converter") from e
    except httpx.HTTPError as e:
        raise RenderError(f"converter request failed: {settings.converter_url}") from e

    return resp.content


def render_pdf(
    docx_bytes: bytes,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> bytes:
    """Convert DOCX bytes into PDF bytes.

    Args:
        docx_bytes: Finished container bytes.
        settings: Optional settings override (backend, binary, URL, timeout).
        transport: Optional httpx transport for the http backend.

    Returns:
        PDF bytes.

    Raises:
        RenderError: If the backend is unknown or conversion fails.
    """
    settings = settings or default_settings
    backend = settings.render_backend
    if backend == "soffice":
        pdf = _render_with_soffice(docx_bytes, settings)
    elif backend == "http":
        pdf = _render_with_http(docx_bytes, settings, transport=transport)
    else:
        raise RenderError(f"Unknown render_backend: {backend}")

    logger.info("Rendered PDF via %s (%d bytes)", backend, len(pdf))
    return pdf
