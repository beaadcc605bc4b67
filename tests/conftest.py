"""Shared fixtures: every test gets its own documents directory."""

from pathlib import Path

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def documents_dir(tmp_path: Path, monkeypatch) -> Path:
    docs = tmp_path / "Documents"
    monkeypatch.setenv("CUBICSVR_DOCUMENTS_DIR", str(docs))
    yield docs
    # CLI commands disable the package logger unless --logs is given
    logger.enable("cubicsvr_config")


@pytest.fixture
def log_messages() -> list[str]:
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
