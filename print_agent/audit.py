import json, time, os, logging
from print_agent import env

logger = logging.getLogger(__name__)


def audit(event: str, payload: dict):
    path = env.AUDIT_LOG_PATH
    if not path:
        return
    record = {
        "ts": time.time(),
        "agent_id": env.AGENT_ID,
        "event": event,
        "payload": payload,
    }
    # the audit trail is a side channel; a broken sink must not stop printing
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError:
        logger.exception("Could not write audit event %r to %s", event, path)
