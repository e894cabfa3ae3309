from abc import ABC, abstractmethod
from typing import List, Optional, Set

from print_agent.models import PrinterDevice


class PrinterProvider(ABC):

    @abstractmethod
    def list_printers(self) -> List[PrinterDevice]:
        pass

    @abstractmethod
    def print_file(self, path: str, printer: str):
        """Hand a PDF to the OS spooler. Raises DispatchError on failure."""

    def list_job_ids(self, printer: str) -> Optional[Set[str]]:
        """Outstanding spooler job ids, or None when the OS can't enumerate them."""
        return None
