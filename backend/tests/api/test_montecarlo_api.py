"""Tests for the Monte Carlo queueing endpoint (Celery mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

# Patch at the source module where run_monte_carlo is defined
_PATCH_TARGET = "app.worker.tasks.run_monte_carlo"

URL = "/api/v1/montecarlo"


class TestQueueMonteCarlo:
    @patch(_PATCH_TARGET)
    async def test_queue(self, mock_task, client: AsyncClient, series_payload):
        mock_task.delay.return_value = MagicMock(id="mc-task-1")

        resp = await client.post(URL, json={**series_payload, "iterations": 50, "base_seed": 3})

        assert resp.status_code == 202
        assert resp.json() == {"task_id": "mc-task-1", "status": "queued"}
        mock_task.delay.assert_called_once()
        payload = mock_task.delay.call_args.args[0]
        assert payload["iterations"] == 50
        assert payload["base_seed"] == 3
        assert len(payload["wind_ms"]) == 24

    @patch(_PATCH_TARGET)
    async def test_iteration_cap(self, mock_task, client: AsyncClient, series_payload):
        resp = await client.post(URL, json={**series_payload, "iterations": 1_000_000})
        assert resp.status_code == 422
        mock_task.delay.assert_not_called()

    @patch(_PATCH_TARGET)
    async def test_invalid_statistics_settings(self, mock_task, client: AsyncClient, series_payload):
        resp = await client.post(URL, json={**series_payload, "t_score": 0})
        assert resp.status_code == 422
        mock_task.delay.assert_not_called()

    @patch(_PATCH_TARGET)
    async def test_rate_limit(self, mock_task, client: AsyncClient, series_payload):
        mock_task.delay.return_value = MagicMock(id="mc-task")
        for _ in range(5):
            assert (await client.post(URL, json=series_payload)).status_code == 202
        assert (await client.post(URL, json=series_payload)).status_code == 429
