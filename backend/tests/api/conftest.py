"""API test infrastructure: async httpx client against the ASGI app."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def app():
    from app.main import create_app
    from app.core.rate_limit import ALL_LIMITERS

    application = create_app()

    # Reset rate limiters between tests
    for limiter in ALL_LIMITERS:
        limiter.reset()

    yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def series_payload(wind_series, load_series) -> dict:
    """One day of hourly series as a request body."""
    return {
        "wind_ms": [float(v) for v in wind_series[:24]],
        "total_load_kw": [float(v) for v in load_series[:24]],
    }
