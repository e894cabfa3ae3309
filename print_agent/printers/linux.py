import logging
import re
import shutil
import subprocess
from typing import List, Optional, Set

from print_agent.errors import DispatchError
from print_agent.models import PrinterDevice
from print_agent.printers.base import PrinterProvider

logger = logging.getLogger(__name__)

_DEFAULT_RE = re.compile(r"destination:\s*(\S+)")


class LinuxPrinterProvider(PrinterProvider):
    """
    CUPS-backed provider (Linux and macOS).

    - lpstat -a   -> printer names
    - lpstat -d   -> system default
    - lp -d       -> dispatch
    - lpstat -o   -> outstanding job ids ("<printer>-<n>")
    """

    def __init__(self, lp_path: str = "lp", lpstat_path: str = "lpstat", timeout: float = 10):
        self.lp_path = lp_path
        self.lpstat_path = lpstat_path
        self.timeout = timeout

    def _lpstat(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self.lpstat_path, *args],
            capture_output=True,
            text=True,
            check=False,
            timeout=self.timeout,
        )

    def list_printers(self) -> List[PrinterDevice]:
        if not shutil.which(self.lpstat_path):
            logger.debug("lpstat not found on PATH; no printers listed")
            return []
        try:
            out = self._lpstat("-a")
        except subprocess.TimeoutExpired:
            logger.warning("lpstat timed out while listing printers")
            return []

        names = []
        for line in out.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            # "EPSON_L5590_Series accepting requests since ..."
            names.append(line.split()[0])

        default = self.default_printer()
        return [PrinterDevice(name=n, is_default=(n == default)) for n in names]

    def default_printer(self) -> Optional[str]:
        try:
            out = self._lpstat("-d")
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("lpstat -d failed: %s", e)
            return None
        # "system default destination: NAME" / "no system default destination"
        m = _DEFAULT_RE.search(out.stdout)
        return m.group(1) if m else None

    def print_file(self, path: str, printer: str):
        cmd = [self.lp_path, "-d", printer, path]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DispatchError(f"lp execution error: {e}", {"printer": printer})
        if proc.returncode != 0:
            out = ((proc.stdout or "") + (proc.stderr or "")).strip()
            raise DispatchError(f"lp failed (rc={proc.returncode}): {out}", {"printer": printer})
        logger.debug("lp accepted %s for %s: %s", path, printer, proc.stdout.strip())

    def list_job_ids(self, printer: str) -> Optional[Set[str]]:
        if not shutil.which(self.lpstat_path):
            return None
        out = self._lpstat("-o", printer)
        if out.returncode != 0:
            raise RuntimeError(f"lpstat -o failed: {out.stderr.strip()}")
        # "HP_LaserJet-42   user   1024   Mon 19 Oct 2026 10:00:00"
        return {line.split()[0] for line in out.stdout.splitlines() if line.strip()}
