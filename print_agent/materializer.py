import asyncio
import base64
import binascii
import html
import logging
import os
import re
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple

from print_agent import env
from print_agent.errors import ConversionError
from print_agent.models import PrintJob

logger = logging.getLogger(__name__)

TEXT_TEMPLATE = (
    '<html><body><pre style="font-family:monospace;white-space:pre-wrap">{}</pre></body></html>'
)

_DATA_URI_RE = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)


def text_to_html(text: str) -> str:
    # only & < > are escaped; quotes are harmless inside <pre>
    return TEXT_TEMPLATE.format(html.escape(text, quote=False))


def decode_pdf_base64(content: str) -> bytes:
    data = _DATA_URI_RE.sub("", content.strip(), count=1)
    # MIME-wrapped payloads carry line breaks every 76 characters
    data = "".join(data.split())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConversionError(f"Invalid base64 PDF payload: {e}")


class ContentMaterializer:
    """
    Turns job content into a PDF path.

    `pdf` jobs already point at a caller-owned file which is never removed.
    Everything else is written to a temp file owned by the current attempt
    and removed when the `materialize` block exits.
    """

    def __init__(self, renderer, temp_dir: Optional[str] = None):
        self.renderer = renderer
        self.temp_dir = temp_dir or env.PRINT_TEMP_DIR

    @asynccontextmanager
    async def materialize(self, job: PrintJob) -> AsyncIterator[str]:
        path, owned = await self._build(job)
        try:
            yield path
        finally:
            if owned:
                self._release(path)

    async def _build(self, job: PrintJob) -> Tuple[str, bool]:
        if job.type == "pdf":
            if not os.path.isfile(job.content):
                raise ConversionError(f"PDF file not found: {job.content}")
            return job.content, False

        try:
            if job.type == "pdf_base64":
                data = decode_pdf_base64(job.content)
            else:
                markup = text_to_html(job.content) if job.type == "text" else job.content
                data = await asyncio.to_thread(self.renderer.render, markup)
            path = await asyncio.to_thread(self._write_temp, data)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"Could not materialize {job.type} content: {e}") from e

        logger.debug("Job %s materialized to %s", job.id, path)
        return path, True

    def _write_temp(self, data: bytes) -> str:
        os.makedirs(self.temp_dir, exist_ok=True)
        fd, path = tempfile.mkstemp(prefix="print_", suffix=".pdf", dir=self.temp_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError:
            self._release(path)
            raise
        return path

    def _release(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove temp artifact %s: %s", path, e)
