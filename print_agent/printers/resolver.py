import logging
import re
from typing import List, Optional, Pattern, Union

from print_agent.models import PrinterDevice
from print_agent.printers.base import PrinterProvider

logger = logging.getLogger(__name__)


def list_printers(provider: PrinterProvider) -> List[PrinterDevice]:
    """Fresh OS listing on every call; an unavailable backend lists nothing."""
    try:
        return provider.list_printers()
    except Exception as e:
        logger.warning("Printer listing failed: %s", e)
        return []


def find_configured(
    provider: PrinterProvider,
    pattern: Union[str, Pattern[str], None],
) -> Optional[PrinterDevice]:
    """
    Pick the target printer:
    1) first name matching `pattern`
    2) the OS default
    3) the first listed printer
    """
    printers = list_printers(provider)
    if pattern:
        rx = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
        for p in printers:
            if rx.search(p.name):
                return p
    for p in printers:
        if p.is_default:
            return p
    return printers[0] if printers else None
