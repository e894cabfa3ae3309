import logging
import subprocess
from typing import List, Optional, Set

from print_agent import env
from print_agent.errors import DispatchError
from print_agent.models import PrinterDevice
from print_agent.printers.base import PrinterProvider

logger = logging.getLogger(__name__)


class WindowsPrinterProvider(PrinterProvider):
    def __init__(self, gs_path: Optional[str] = None, timeout: float = 60):
        self.gs_path = gs_path or env.GS_PATH
        self.timeout = timeout

    def list_printers(self) -> List[PrinterDevice]:
        import win32print
        flags = win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
        printers = win32print.EnumPrinters(flags)
        try:
            default = win32print.GetDefaultPrinter()
        except win32print.error:
            default = None
        # p is a tuple, name at index 2
        return [PrinterDevice(name=p[2], is_default=(p[2] == default)) for p in printers]

    def print_file(self, path: str, printer: str):
        """
        Print a PDF through Ghostscript's mswinpr2 device, one copy per call.
        """
        output = f"%printer%{printer}"
        args = [
            self.gs_path, "-dBATCH", "-dNOPAUSE", "-dNumCopies=1",
            "-sDEVICE=mswinpr2", f"-sOutputFile={output}", path,
        ]
        try:
            proc = subprocess.run(args, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DispatchError(f"Ghostscript execution error: {e}", {"printer": printer})
        if proc.returncode != 0:
            out = (proc.stdout + proc.stderr).strip()
            raise DispatchError(f"Ghostscript failed (rc={proc.returncode}): {out}", {"printer": printer})

    def list_job_ids(self, printer: str) -> Optional[Set[str]]:
        import win32print
        h = win32print.OpenPrinter(printer)
        try:
            # EnumJobs(hPrinter, FirstJob, NoJobs, level)
            jobs = win32print.EnumJobs(h, 0, -1, 1)
            return {str(j["JobId"]) for j in jobs}
        finally:
            win32print.ClosePrinter(h)
