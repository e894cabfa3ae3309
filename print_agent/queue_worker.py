import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

from print_agent import env
from print_agent.audit import audit
from print_agent.errors import PrintAgentError, PrinterNotFound, QueueFull
from print_agent.materializer import ContentMaterializer
from print_agent.models import PrintJob, PrintJobStatusRecord, PrinterDevice
from print_agent.printers.base import PrinterProvider
from print_agent.printers.resolver import find_configured, list_printers
from print_agent.render import ChromiumRenderer
from print_agent.tracker import ConfirmResult, dispatch_and_confirm

logger = logging.getLogger(__name__)

EVENTS = ("queued", "job-status", "completed", "failed", "cancelled")

PRIORITY_WEIGHT = {"low": 1, "normal": 2, "high": 3}


def priority_weight(priority: str) -> int:
    return PRIORITY_WEIGHT.get(priority, 2)


class PrintQueue:
    """
    Priority queue of print jobs in front of a single printer.

    Jobs are processed one at a time by a worker task that only exists while
    there is queued work. `submit` and `cancel` run on the event loop between
    the worker's awaits, so they never observe a half-updated job.
    """

    def __init__(
        self,
        provider: PrinterProvider,
        *,
        materializer: Optional[ContentMaterializer] = None,
        printer_pattern: Optional[str] = None,
        max_queue: Optional[int] = None,
        retry_max: Optional[int] = None,
        retry_delay: Optional[float] = None,
        confirm_timeout: Optional[float] = None,
        start_poll: Optional[float] = None,
        done_poll: Optional[float] = None,
        history_max: Optional[int] = None,
    ):
        self.provider = provider
        self.materializer = materializer or ContentMaterializer(ChromiumRenderer())
        self.printer_pattern = env.PRINTER_PATTERN if printer_pattern is None else printer_pattern
        self.max_queue = env.QUEUE_MAX if max_queue is None else max_queue
        self.retry_max = env.RETRY_MAX if retry_max is None else retry_max
        self.retry_delay = env.RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.confirm_timeout = env.CONFIRM_TIMEOUT_SECONDS if confirm_timeout is None else confirm_timeout
        self.start_poll = env.SPOOL_START_POLL_SECONDS if start_poll is None else start_poll
        self.done_poll = env.SPOOL_DONE_POLL_SECONDS if done_poll is None else done_poll
        self.history_max = env.HISTORY_MAX if history_max is None else history_max

        self._queue: List[PrintJob] = []
        self._history: "OrderedDict[str, PrintJobStatusRecord]" = OrderedDict()
        self._listeners: Dict[str, List[Callable]] = {}
        self._stats = {"completed": 0, "failed": 0}
        self._processing = False
        self._worker_task: Optional[asyncio.Task] = None

    # --------------------------------------------------
    # Events
    # --------------------------------------------------
    def on(self, event: str, callback: Callable):
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}")
        self._listeners.setdefault(event, []).append(callback)

    def _emit(self, event: str, payload):
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(payload)
            except Exception:
                logger.exception("Listener for %r failed", event)

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------
    def submit(self, content: str, type: str = "html", *, copies: int = 1, priority: str = "normal") -> str:
        """Queue a job and return its id. Must be called from the event loop."""
        loop = asyncio.get_running_loop()
        if len(self._queue) >= self.max_queue:
            raise QueueFull(f"Queue full ({self.max_queue} jobs)", {"max_queue": self.max_queue})

        job = PrintJob(content=content, type=type, copies=copies, priority=priority)

        # before the first strictly-lower priority job; FIFO among equals
        weight = priority_weight(job.priority)
        idx = next((i for i, j in enumerate(self._queue) if priority_weight(j.priority) < weight), None)
        if idx is None:
            self._queue.append(job)
        else:
            self._queue.insert(idx, job)

        self._publish(job)
        self._emit("queued", job)
        self._kick(loop)
        logger.info("Job %s queued (type=%s priority=%s copies=%d)", job.id, job.type, job.priority, job.copies)
        audit("job_queued", {"job_id": job.id, "type": job.type, "priority": job.priority, "copies": job.copies})
        return job.id

    def cancel(self, job_id: str) -> bool:
        job = self._find(job_id)
        if job is None or job.status == "printing":
            return False
        job.status = "cancelled"
        self._publish(job)
        self._remove(job_id)
        self._emit("cancelled", job)
        logger.info("Job %s cancelled", job_id)
        audit("job_cancelled", {"job_id": job_id})
        return True

    def get_job_status(self, job_id: str) -> Optional[PrintJobStatusRecord]:
        return self._history.get(job_id)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def get_queue(self) -> List[PrintJob]:
        return [j.model_copy() for j in self._queue]

    def get_state(self) -> dict:
        return {
            "queue_len": len(self._queue),
            "processing": self._processing,
            **self._stats,
        }

    def is_ready(self) -> bool:
        return not self._processing or len(self._queue) < self.max_queue

    def list_printers(self) -> List[PrinterDevice]:
        return list_printers(self.provider)

    async def find_configured(self) -> Optional[PrinterDevice]:
        return await asyncio.to_thread(find_configured, self.provider, self.printer_pattern)

    async def drain(self):
        """Wait until the worker has run out of queued jobs."""
        while self._processing and self._worker_task is not None:
            await asyncio.shield(self._worker_task)

    # --------------------------------------------------
    # Worker
    # --------------------------------------------------
    def _kick(self, loop: asyncio.AbstractEventLoop):
        if self._processing:
            return
        self._processing = True
        self._worker_task = loop.create_task(self._process_queue())

    async def _process_queue(self):
        try:
            while True:
                job = next((j for j in self._queue if j.status == "queued"), None)
                if job is None:
                    break
                await self._process_job(job)
        finally:
            self._processing = False

    async def _process_job(self, job: PrintJob):
        job.status = "printing"
        job.attempts += 1
        self._publish(job)
        logger.info("Processing job %s (attempt %d/%d)", job.id, job.attempts, self.retry_max)
        audit("job_printing", {"job_id": job.id, "attempt": job.attempts})

        try:
            printer = await self.find_configured()
            if printer is None:
                raise PrinterNotFound("No printer available")

            async with self.materializer.materialize(job) as artifact:
                result = await dispatch_and_confirm(
                    self.provider,
                    artifact,
                    printer.name,
                    job.copies,
                    timeout=self.confirm_timeout,
                    start_poll=self.start_poll,
                    done_poll=self.done_poll,
                )
        except Exception as e:
            await self._fail_attempt(job, e)
            return

        self._complete(job, printer.name, result)

    def _complete(self, job: PrintJob, printer: str, result: ConfirmResult):
        job.status = "completed"
        self._publish(job, confirmed=result.fully_confirmed)
        self._remove(job.id)
        self._stats["completed"] += 1
        self._emit("completed", job)
        logger.info("Job %s completed on %s", job.id, printer)
        audit("job_done", {"job_id": job.id, "printer": printer, "spool_job_ids": result.job_ids})
        if not result.fully_confirmed:
            logger.warning(
                "Job %s: %d of %d copies never appeared in the spooler",
                job.id, result.unconfirmed, job.copies,
            )
            audit("job_unconfirmed", {"job_id": job.id, "unconfirmed": result.unconfirmed})

    async def _fail_attempt(self, job: PrintJob, error: Exception):
        job.error = str(error) or type(error).__name__
        if isinstance(error, PrintAgentError):
            logger.warning("Job %s attempt %d failed: %s", job.id, job.attempts, job.error)
        else:
            logger.exception("Job %s attempt %d failed unexpectedly", job.id, job.attempts)
        audit("job_error", {"job_id": job.id, "attempt": job.attempts, "error": job.error})

        if job.attempts < self.retry_max:
            job.status = "queued"
            self._publish(job)
            logger.info("Job %s will retry in %gs", job.id, self.retry_delay)
            await asyncio.sleep(self.retry_delay)
            return

        job.status = "failed"
        self._publish(job)
        self._remove(job.id)
        self._stats["failed"] += 1
        self._emit("failed", job)
        logger.error("Job %s failed after %d attempts: %s", job.id, job.attempts, job.error)
        audit("job_failed", {"job_id": job.id, "attempts": job.attempts, "error": job.error})

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------
    def _find(self, job_id: str) -> Optional[PrintJob]:
        return next((j for j in self._queue if j.id == job_id), None)

    def _remove(self, job_id: str):
        self._queue = [j for j in self._queue if j.id != job_id]

    def _publish(self, job: PrintJob, confirmed: Optional[bool] = None):
        record = PrintJobStatusRecord(
            id=job.id,
            status=job.status,
            error=job.error,
            created_at=job.created_at,
            updated_at=time.time(),
            attempts=job.attempts,
            confirmed=confirmed,
        )
        # re-assigning an existing key keeps its slot: eviction is oldest-submitted first
        self._history[job.id] = record
        while len(self._history) > self.history_max:
            self._history.popitem(last=False)
        self._emit("job-status", record)
