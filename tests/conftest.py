"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from tests.helpers import FakeStreamingService  # noqa: E402
from s2s_client.pipeline.config import SessionConfig  # noqa: E402
from s2s_client.pipeline.shutdown import CancellationToken  # noqa: E402


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(chunk_duration_ms=100)


@pytest.fixture
def fake_service() -> FakeStreamingService:
    return FakeStreamingService()
