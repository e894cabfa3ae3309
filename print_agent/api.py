import logging
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException

from print_agent import env
from print_agent.audit import audit
from print_agent.errors import QueueFull
from print_agent.models import PrintJobIn
from print_agent.queue_worker import PrintQueue
from print_agent.security import verify_agent_token

logger = logging.getLogger(__name__)


def create_app(queue: Optional[PrintQueue] = None) -> FastAPI:
    if queue is None:
        from print_agent.printers import printer_provider
        queue = PrintQueue(printer_provider)

    app = FastAPI(title="Print Agent")
    app.state.queue = queue

    @app.on_event("startup")
    async def _startup():
        audit("agent_startup", {"agent_id": env.AGENT_ID, "name": env.AGENT_NAME})
        logger.info("Agent %s starting (queue max=%d, retries=%d)", env.AGENT_ID, queue.max_queue, queue.retry_max)

    @app.get("/health")
    async def health():
        # public: liveness only, nothing sensitive
        return {
            "ok": True,
            "agent_id": env.AGENT_ID,
            "name": env.AGENT_NAME,
            "ready": queue.is_ready(),
        }

    @app.get("/status", dependencies=[Depends(verify_agent_token)])
    async def status():
        return {
            "ok": True,
            "agent_id": env.AGENT_ID,
            "name": env.AGENT_NAME,
            **queue.get_state(),
        }

    @app.get("/printers", dependencies=[Depends(verify_agent_token)])
    def printers():
        return [p.model_dump() for p in queue.list_printers()]

    @app.post("/jobs", dependencies=[Depends(verify_agent_token)])
    async def create_job(payload: PrintJobIn):
        try:
            job_id = queue.submit(
                payload.content,
                payload.type,
                copies=payload.copies,
                priority=payload.priority,
            )
        except QueueFull as e:
            raise HTTPException(status_code=429, detail=e.to_dict())
        return {"success": True, "job_id": job_id}

    @app.get("/jobs", dependencies=[Depends(verify_agent_token)])
    async def list_jobs():
        return [j.model_dump(exclude={"content"}) for j in queue.get_queue()]

    @app.get("/jobs/{job_id}", dependencies=[Depends(verify_agent_token)])
    async def job_status(job_id: str):
        record = queue.get_job_status(job_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return record.model_dump()

    @app.delete("/jobs/{job_id}", dependencies=[Depends(verify_agent_token)])
    async def cancel_job(job_id: str):
        return {"job_id": job_id, "cancelled": queue.cancel(job_id)}

    @app.get("/stats", dependencies=[Depends(verify_agent_token)])
    async def stats():
        return queue.get_stats()

    return app
