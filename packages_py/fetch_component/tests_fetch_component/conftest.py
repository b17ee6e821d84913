"""
Shared fixtures for fetch_component tests.
"""
import asyncio

import pytest
from unittest.mock import AsyncMock

import httpx


def make_response(status_code: int, text: str = "", **kwargs) -> httpx.Response:
    """Build a settled httpx.Response."""
    if "json" in kwargs:
        return httpx.Response(status_code, json=kwargs["json"])
    return httpx.Response(status_code, text=text)


class SlowTransport:
    """Transport answering after a delay, recording calls and cancellations."""

    def __init__(self, delay: float, status_code: int = 201, text: str = "success"):
        self.delay = delay
        self.status_code = status_code
        self.text = text
        self.calls = 0
        self.cancelled = 0

    async def __call__(self, request, token):
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return httpx.Response(self.status_code, text=self.text, request=request)


@pytest.fixture
def mock_transport():
    """AsyncMock transport; set side_effect or return_value per test."""
    transport = AsyncMock()
    transport.return_value = make_response(200, json={"mock": "successful"})
    return transport


@pytest.fixture
def slow_transport():
    """Transport answering 201 after 0.5s."""
    return SlowTransport(delay=0.5)
