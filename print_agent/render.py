"""
HTML -> PDF through a headless Chromium process.

Chromium is driven from the command line (--print-to-pdf), so the agent
doesn't need a browser automation library, only a browser binary.
"""
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from print_agent import env
from print_agent.errors import ConversionError

logger = logging.getLogger(__name__)

CANDIDATES = ("chromium", "chromium-browser", "google-chrome", "google-chrome-stable", "chrome", "msedge")


class ChromiumRenderer:
    def __init__(self, chrome_path: Optional[str] = None, timeout: Optional[float] = None):
        self.chrome_path = chrome_path or env.CHROME_PATH
        self.timeout = timeout if timeout is not None else env.RENDER_TIMEOUT_SECONDS

    def binary(self) -> str:
        if self.chrome_path:
            return self.chrome_path
        for name in CANDIDATES:
            found = shutil.which(name)
            if found:
                return found
        raise ConversionError("No headless Chromium found. Set CHROME_PATH.")

    def render(self, html: str) -> bytes:
        binary = self.binary()
        with tempfile.TemporaryDirectory(prefix="print_render_") as tmp:
            src = Path(tmp) / "page.html"
            out = Path(tmp) / "page.pdf"
            src.write_text(html, encoding="utf-8")
            cmd = [
                binary,
                "--headless",
                "--disable-gpu",
                "--no-pdf-header-footer",
                f"--print-to-pdf={out}",
                src.as_uri(),
            ]
            try:
                proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except (OSError, subprocess.TimeoutExpired) as e:
                raise ConversionError(f"Renderer execution error: {e}")
            if proc.returncode != 0 or not out.exists():
                raise ConversionError(
                    f"Renderer failed (rc={proc.returncode}): {proc.stderr.strip()[:500]}"
                )
            data = out.read_bytes()
        logger.debug("Rendered %d bytes of HTML into %d bytes of PDF", len(html), len(data))
        return data
