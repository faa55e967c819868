"""Pytest configuration shared across the suite."""

import pytest

import _bootstrap  # noqa: F401
from _fakes import FakeClock, FakeDocumentClient


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_client() -> FakeDocumentClient:
    return FakeDocumentClient()
