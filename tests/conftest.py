"""Pytest fixtures for print agent tests."""

from pathlib import Path

import pytest

from fakes import FakeProvider, FakeRenderer
from print_agent import env
from print_agent.materializer import ContentMaterializer
from print_agent.queue_worker import PrintQueue


@pytest.fixture(autouse=True)
def audit_log(tmp_path: Path, monkeypatch) -> Path:
    """Keep audit records inside the test's temp dir."""
    path = tmp_path / "logs" / "audit.jsonl"
    monkeypatch.setattr(env, "AUDIT_LOG_PATH", str(path))
    return path


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    d = tmp_path / "spool"
    d.mkdir()
    return d


@pytest.fixture
def make_queue(spool_dir: Path):
    """Build a PrintQueue with fast timings around a fake spooler."""

    def _make(provider=None, renderer=None, **overrides) -> PrintQueue:
        options = dict(
            printer_pattern=r"Lexmark\s*MS430",
            retry_delay=0,
            confirm_timeout=0.5,
            start_poll=0.01,
            done_poll=0.01,
        )
        options.update(overrides)
        return PrintQueue(
            provider or FakeProvider(),
            materializer=ContentMaterializer(renderer or FakeRenderer(), temp_dir=str(spool_dir)),
            **options,
        )

    return _make
