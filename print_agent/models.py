from pydantic import BaseModel, Field
from typing import Literal, Optional
import time
import uuid

JobType = Literal["html", "text", "pdf", "pdf_base64"]
Priority = Literal["low", "normal", "high"]
JobStatus = Literal["queued", "printing", "completed", "failed", "cancelled"]


class PrintJobIn(BaseModel):
    content: str = Field(min_length=1)
    type: JobType = "html"
    copies: int = Field(1, ge=1)
    priority: Priority = "normal"


class PrintJob(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    type: JobType = "html"
    copies: int = Field(1, ge=1)
    priority: Priority = "normal"
    status: JobStatus = "queued"
    created_at: float = Field(default_factory=lambda: time.time())
    attempts: int = 0
    error: Optional[str] = None


class PrintJobStatusRecord(BaseModel):
    id: str
    status: JobStatus
    error: Optional[str] = None
    created_at: float
    updated_at: float
    attempts: int
    # False when the job completed without the spooler ever showing its job id
    confirmed: Optional[bool] = None


class PrinterDevice(BaseModel):
    name: str
    is_default: bool = False
    status: Literal["ready", "busy", "offline", "unknown"] = "unknown"
