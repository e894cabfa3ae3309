"""In-memory stand-ins for the OS spooler and the HTML renderer."""

import os
import threading
from typing import Dict, List, Optional

from print_agent.errors import DispatchError
from print_agent.models import PrinterDevice
from print_agent.printers.base import PrinterProvider

PDF_BYTES = b"%PDF-1.4\n%fake\n%%EOF\n"


class FakeProvider(PrinterProvider):
    """
    In-memory spooler.

    Each dispatched file becomes a spooler job that stays visible for
    `linger` snapshots. linger=0 means the job is never observed;
    stuck=True means it never leaves.
    """

    def __init__(
        self,
        printers: Optional[List[PrinterDevice]] = None,
        spooler: bool = True,
        linger: int = 2,
        stuck: bool = False,
        fail_prints: int = 0,
    ):
        self.printers = [PrinterDevice(name="Office", is_default=True)] if printers is None else printers
        self.spooler = spooler
        self.linger = linger
        self.stuck = stuck
        self.fail_prints = fail_prints
        self.printed: List[Dict] = []
        self.jobs: Dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def list_printers(self):
        return list(self.printers)

    def print_file(self, path, printer):
        with self._lock:
            self.printed.append({"path": path, "printer": printer, "existed": os.path.exists(path)})
            if self.fail_prints != 0:
                self.fail_prints -= 1
                raise DispatchError("printer jammed")
            if self.spooler:
                self.jobs[f"{printer}-{self._next_id}"] = self.linger
                self._next_id += 1

    def list_job_ids(self, printer):
        if not self.spooler:
            return None
        with self._lock:
            visible = {jid for jid, left in self.jobs.items() if left > 0}
            if not self.stuck:
                for jid in list(self.jobs):
                    self.jobs[jid] -= 1
                    if self.jobs[jid] <= 0:
                        del self.jobs[jid]
            return visible


class FakeRenderer:
    """Records every HTML document it is asked to render."""

    def __init__(self, fail: bool = False, timeline: Optional[list] = None):
        self.fail = fail
        self.rendered: List[str] = []
        self.timeline = timeline if timeline is not None else []

    def render(self, html: str) -> bytes:
        self.rendered.append(html)
        self.timeline.append(("render", html))
        if self.fail:
            raise RuntimeError("renderer crashed")
        return PDF_BYTES


class GatedRenderer(FakeRenderer):
    """Blocks inside render() until `release` is set."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def render(self, html: str) -> bytes:
        self.started.set()
        self.release.wait(timeout=5)
        return super().render(html)


