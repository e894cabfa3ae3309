"""Tests for turning job content into PDF artifacts."""

import asyncio
import base64
import subprocess
from pathlib import Path

import pytest

from fakes import PDF_BYTES, FakeRenderer
from print_agent import env, render
from print_agent.errors import ConversionError
from print_agent.materializer import ContentMaterializer, decode_pdf_base64, text_to_html
from print_agent.models import PrintJob
from print_agent.render import ChromiumRenderer


async def _use(materializer, job, body=None):
    async with materializer.materialize(job) as path:
        data = Path(path).read_bytes()
        if body:
            body(path)
        return path, data


def materialize(materializer, job, body=None):
    return asyncio.run(_use(materializer, job, body))


class TestTextToHtml:
    def test_escapes_markup(self):
        html = text_to_html('a < b && c > "d"')
        assert "a &lt; b &amp;&amp; c &gt; \"d\"" in html
        assert html.startswith('<html><body><pre style="font-family:monospace;white-space:pre-wrap">')
        assert html.endswith("</pre></body></html>")


class TestDecodeBase64:
    def test_plain(self):
        assert decode_pdf_base64(base64.b64encode(PDF_BYTES).decode()) == PDF_BYTES

    def test_data_uri_prefix(self):
        payload = "data:application/pdf;base64," + base64.b64encode(PDF_BYTES).decode()
        assert decode_pdf_base64(payload) == PDF_BYTES

    def test_invalid(self):
        with pytest.raises(ConversionError):
            decode_pdf_base64("not base64 at all!")

    def test_mime_wrapped_lines(self):
        payload = base64.encodebytes(PDF_BYTES * 10).decode()
        assert "\n" in payload.strip()
        assert decode_pdf_base64(payload) == PDF_BYTES * 10


class TestMaterialize:
    """Tests for ContentMaterializer.materialize."""

    def test_text_goes_through_renderer(self, spool_dir: Path):
        renderer = FakeRenderer()
        m = ContentMaterializer(renderer, temp_dir=str(spool_dir))
        path, data = materialize(m, PrintJob(content="1 < 2", type="text"))
        assert data == PDF_BYTES
        assert renderer.rendered == [text_to_html("1 < 2")]
        assert Path(path).parent == spool_dir
        assert not Path(path).exists()

    def test_html_passes_through_unchanged(self, spool_dir: Path):
        renderer = FakeRenderer()
        m = ContentMaterializer(renderer, temp_dir=str(spool_dir))
        materialize(m, PrintJob(content="<h1>Receipt</h1>", type="html"))
        assert renderer.rendered == ["<h1>Receipt</h1>"]

    def test_base64_written_to_temp_and_removed(self, spool_dir: Path):
        renderer = FakeRenderer()
        m = ContentMaterializer(renderer, temp_dir=str(spool_dir))
        job = PrintJob(content=base64.b64encode(PDF_BYTES).decode(), type="pdf_base64")
        path, data = materialize(m, job)
        assert data == PDF_BYTES
        assert renderer.rendered == []
        assert not Path(path).exists()

    def test_temp_removed_when_block_raises(self, spool_dir: Path):
        m = ContentMaterializer(FakeRenderer(), temp_dir=str(spool_dir))

        def fail(path):
            raise RuntimeError("dispatch blew up")

        with pytest.raises(RuntimeError):
            materialize(m, PrintJob(content="x", type="text"), body=fail)
        assert list(spool_dir.iterdir()) == []

    def test_pdf_path_used_as_is_and_kept(self, spool_dir: Path, tmp_path: Path):
        pdf = tmp_path / "label.pdf"
        pdf.write_bytes(PDF_BYTES)
        m = ContentMaterializer(FakeRenderer(), temp_dir=str(spool_dir))
        path, _ = materialize(m, PrintJob(content=str(pdf), type="pdf"))
        assert path == str(pdf)
        assert pdf.exists()

    def test_missing_pdf_path(self, spool_dir: Path):
        m = ContentMaterializer(FakeRenderer(), temp_dir=str(spool_dir))
        with pytest.raises(ConversionError, match="not found"):
            materialize(m, PrintJob(content=str(spool_dir / "nope.pdf"), type="pdf"))

    def test_renderer_failure_is_conversion_error(self, spool_dir: Path):
        m = ContentMaterializer(FakeRenderer(fail=True), temp_dir=str(spool_dir))
        with pytest.raises(ConversionError, match="renderer crashed"):
            materialize(m, PrintJob(content="<p>x</p>", type="html"))
        assert list(spool_dir.iterdir()) == []

    def test_bad_base64_is_conversion_error(self, spool_dir: Path):
        m = ContentMaterializer(FakeRenderer(), temp_dir=str(spool_dir))
        with pytest.raises(ConversionError):
            materialize(m, PrintJob(content="%%%", type="pdf_base64"))


class TestChromiumRenderer:
    """Tests for ChromiumRenderer with the browser process stubbed out."""

    def test_render_reads_printed_pdf(self, monkeypatch):
        seen = []

        def fake_run(cmd, **kwargs):
            seen.append(cmd)
            out = next(a.split("=", 1)[1] for a in cmd if a.startswith("--print-to-pdf="))
            Path(out).write_bytes(PDF_BYTES)
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(render.subprocess, "run", fake_run)
        data = ChromiumRenderer(chrome_path="/opt/chromium", timeout=5).render("<p>hi</p>")
        assert data == PDF_BYTES
        assert seen[0][0] == "/opt/chromium"
        assert "--headless" in seen[0]
        assert seen[0][-1].startswith("file://")

    def test_render_failure(self, monkeypatch):
        monkeypatch.setattr(
            render.subprocess, "run",
            lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, "", "no display"),
        )
        with pytest.raises(ConversionError, match="no display"):
            ChromiumRenderer(chrome_path="/opt/chromium").render("<p>hi</p>")

    def test_no_browser_installed(self, monkeypatch):
        monkeypatch.setattr(env, "CHROME_PATH", "")
        monkeypatch.setattr(render.shutil, "which", lambda name: None)
        with pytest.raises(ConversionError, match="CHROME_PATH"):
            ChromiumRenderer().binary()
