"""
Spooler observation and completion tracking.

The spooler has no push notifications, so confirmation is a diff of job-id
snapshots taken before and after dispatch:

  Phase A: wait for a new id to show up. If none appears before the deadline
           the copy is counted as unconfirmed but successful (it may have gone
           through between polls, or the platform can't enumerate jobs).
  Phase B: wait for every new id to leave the queue. Ids still present at the
           deadline raise ConfirmationTimeout. A failed enumeration counts as
           still pending.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Set

from print_agent import env
from print_agent.errors import ConfirmationTimeout, DispatchError, PrintAgentError
from print_agent.polling import poll_until
from print_agent.printers.base import PrinterProvider

logger = logging.getLogger(__name__)


@dataclass
class ConfirmResult:
    confirmed: int = 0
    unconfirmed: int = 0
    job_ids: List[str] = field(default_factory=list)

    @property
    def fully_confirmed(self) -> bool:
        return self.unconfirmed == 0


async def _read_job_ids(provider: PrinterProvider, printer: str) -> Optional[Set[str]]:
    """Outstanding ids; empty when the platform can't enumerate, None when enumeration failed."""
    try:
        ids = await asyncio.to_thread(provider.list_job_ids, printer)
    except Exception as e:
        logger.warning("Spooler enumeration failed for %s: %s", printer, e)
        return None
    return set(ids or ())


async def snapshot_job_ids(provider: PrinterProvider, printer: str) -> Set[str]:
    ids = await _read_job_ids(provider, printer)
    return set() if ids is None else ids


async def dispatch(provider: PrinterProvider, artifact: str, printer: str):
    try:
        await asyncio.to_thread(provider.print_file, artifact, printer)
    except PrintAgentError:
        raise
    except Exception as e:
        raise DispatchError(f"Print submission failed: {e}", {"printer": printer}) from e


async def dispatch_and_confirm(
    provider: PrinterProvider,
    artifact: str,
    printer: str,
    copies: int = 1,
    *,
    timeout: Optional[float] = None,
    start_poll: Optional[float] = None,
    done_poll: Optional[float] = None,
) -> ConfirmResult:
    timeout = env.CONFIRM_TIMEOUT_SECONDS if timeout is None else timeout
    start_poll = env.SPOOL_START_POLL_SECONDS if start_poll is None else start_poll
    done_poll = env.SPOOL_DONE_POLL_SECONDS if done_poll is None else done_poll

    result = ConfirmResult()
    for copy in range(1, copies + 1):
        before = await snapshot_job_ids(provider, printer)
        await dispatch(provider, artifact, printer)
        deadline = time.monotonic() + timeout

        async def new_ids():
            return await snapshot_job_ids(provider, printer) - before

        tracked = await poll_until(new_ids, interval=start_poll, deadline=deadline)
        if not tracked:
            logger.info("Copy %d/%d on %s: no spooler job observed, assuming printed", copy, copies, printer)
            result.unconfirmed += 1
            continue

        logger.debug("Copy %d/%d on %s: tracking spooler jobs %s", copy, copies, printer, sorted(tracked))

        async def drained():
            current = await _read_job_ids(provider, printer)
            # a failed enumeration says nothing about the tracked ids
            return current is not None and not (tracked & current)

        if not await poll_until(drained, interval=done_poll, deadline=deadline):
            raise ConfirmationTimeout(
                f"Spooler jobs {sorted(tracked)} still pending on {printer} after {timeout:g}s",
                {"printer": printer, "job_ids": sorted(tracked), "copy": copy},
            )
        result.confirmed += 1
        result.job_ids.extend(sorted(tracked))

    return result
