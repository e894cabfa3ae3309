"""Error taxonomy for the print queue.

Everything raised while a job is being processed is caught by the worker and
recorded on the job. Only ``QueueFull`` reaches the caller of ``submit``.
"""
import time
from typing import Any, Dict, Optional


class PrintAgentError(RuntimeError):
    code = "PRINT_FAILED"
    retryable = True

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": str(self),
            "retryable": self.retryable,
            "timestamp": self.timestamp,
            "context": self.context,
        }


class QueueFull(PrintAgentError):
    """Submission rejected; the caller must resubmit."""

    code = "QUEUE_FULL"
    retryable = False


class PrinterNotFound(PrintAgentError):
    code = "PRINTER_NOT_FOUND"


class ConversionError(PrintAgentError):
    """Content could not be turned into a PDF artifact."""

    code = "CONVERSION_FAILED"


class DispatchError(PrintAgentError):
    """The OS print command failed."""

    code = "PRINT_FAILED"


class ConfirmationTimeout(PrintAgentError):
    """The spooler still held the job when the deadline passed."""

    code = "TIMEOUT"
