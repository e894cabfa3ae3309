import logging
from typing import Any, Dict, List, Optional

import requests

from print_agent import env

logger = logging.getLogger(__name__)


class PrintAgentClient:
    """
    Thin HTTP client for a running print agent.

    base_url: e.g. "http://127.0.0.1:9001"
    token:    X-Agent-Token value (defaults to PRINT_AGENT_TOKEN)
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self.token = env.PRINT_AGENT_TOKEN if token is None else token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        h: Dict[str, str] = {"Content-Type": "application/json"}
        if self.token:
            h["X-Agent-Token"] = self.token
        return h

    def _get(self, path: str) -> requests.Response:
        return requests.get(f"{self.base_url}{path}", headers=self._headers(), timeout=self.timeout)

    def submit(
        self,
        content: str,
        type: str = "html",
        *,
        copies: int = 1,
        priority: str = "normal",
    ) -> str:
        """Queue a job and return its id. A full queue surfaces as HTTP 429."""
        payload = {
            "content": content,
            "type": type,
            "copies": int(copies),
            "priority": priority,
        }
        r = requests.post(f"{self.base_url}/jobs", json=payload, headers=self._headers(), timeout=self.timeout)
        r.raise_for_status()
        job_id = r.json()["job_id"]
        logger.debug("Submitted job %s to %s", job_id, self.base_url)
        return job_id

    def list_printers(self) -> List[Dict[str, Any]]:
        r = self._get("/printers")
        r.raise_for_status()
        return r.json()

    def job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        r = self._get(f"/jobs/{job_id}")
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()

    def cancel(self, job_id: str) -> bool:
        r = requests.delete(f"{self.base_url}/jobs/{job_id}", headers=self._headers(), timeout=self.timeout)
        r.raise_for_status()
        return bool(r.json().get("cancelled"))

    def stats(self) -> Dict[str, int]:
        r = self._get("/stats")
        r.raise_for_status()
        return r.json()

    def health(self) -> Dict[str, Any]:
        r = self._get("/health")
        r.raise_for_status()
        return r.json()
