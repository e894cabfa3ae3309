import os
import tempfile
from dotenv import load_dotenv

load_dotenv()  # reads .env from the cwd

PRINT_AGENT_TOKEN = os.getenv("PRINT_AGENT_TOKEN", "")
AGENT_ID = os.getenv("AGENT_ID", "agent-unknown")
AGENT_NAME = os.getenv("AGENT_NAME", AGENT_ID)
AGENT_HOST = os.getenv("AGENT_HOST", "127.0.0.1")
AGENT_PORT = int(os.getenv("AGENT_PORT", "9001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUDIT_LOG_PATH = os.getenv("AUDIT_LOG_PATH", "./logs/audit.jsonl")

# Preferred printer, matched case-insensitively against OS printer names
PRINTER_PATTERN = os.getenv("PRINTER_PATTERN", r"Lexmark\s*MS430")

QUEUE_MAX = int(os.getenv("QUEUE_MAX", "100"))
RETRY_MAX = int(os.getenv("RETRY_MAX", "3"))
RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "2.0"))
HISTORY_MAX = int(os.getenv("HISTORY_MAX", "500"))

# Spooler confirmation (seconds)
CONFIRM_TIMEOUT_SECONDS = float(os.getenv("CONFIRM_TIMEOUT_SECONDS", "60"))
SPOOL_START_POLL_SECONDS = float(os.getenv("SPOOL_START_POLL_SECONDS", "0.4"))
SPOOL_DONE_POLL_SECONDS = float(os.getenv("SPOOL_DONE_POLL_SECONDS", "0.6"))

PRINT_TEMP_DIR = os.getenv("PRINT_TEMP_DIR") or tempfile.gettempdir()

# Headless Chromium used for HTML -> PDF. Empty means "look on PATH".
CHROME_PATH = os.getenv("CHROME_PATH", "")
RENDER_TIMEOUT_SECONDS = float(os.getenv("RENDER_TIMEOUT_SECONDS", "60"))

# Ghostscript console binary, used for dispatch on Windows
GS_PATH = os.getenv("GS_PATH", "gswin64c.exe")
