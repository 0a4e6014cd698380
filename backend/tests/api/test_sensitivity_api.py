"""Tests for the sensitivity endpoints (Celery mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

_PATCH_TARGET = "app.worker.sensitivity_task.run_sobol"

URL = "/api/v1/sensitivity/sobol"


class TestParameters:
    async def test_list(self, client: AsyncClient):
        resp = await client.get("/api/v1/sensitivity/parameters")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 18
        by_name = {p["name"]: p for p in data}
        assert by_name["DG_COUNT"]["integer"] is True
        assert by_name["DG_COUNT"]["field"] == "total_diesel_generator_count"


class TestQueueSobol:
    @patch(_PATCH_TARGET)
    async def test_queue(self, mock_task, client: AsyncClient, series_payload):
        mock_task.delay.return_value = MagicMock(id="sobol-task-1")
        body = {
            **series_payload,
            "n": 8,
            "mc_iterations": 2,
            "factors": [
                {"name": "DG_COUNT"},
                {"name": "BT_CAPACITY_PER_BUS", "min_value": 100, "max_value": 900},
            ],
        }

        resp = await client.post(URL, json=body)

        assert resp.status_code == 202
        assert resp.json()["task_id"] == "sobol-task-1"
        payload = mock_task.delay.call_args.args[0]
        assert [f["name"] for f in payload["factors"]] == ["DG_COUNT", "BT_CAPACITY_PER_BUS"]

    @patch(_PATCH_TARGET)
    async def test_unknown_factor(self, mock_task, client: AsyncClient, series_payload):
        body = {**series_payload, "factors": [{"name": "PV_POWER"}]}
        resp = await client.post(URL, json=body)
        assert resp.status_code == 422
        assert "PV_POWER" in resp.json()["detail"]
        mock_task.delay.assert_not_called()

    @patch(_PATCH_TARGET)
    async def test_duplicate_factor(self, mock_task, client: AsyncClient, series_payload):
        body = {**series_payload, "factors": [{"name": "DG_COUNT"}, {"name": "DG_COUNT"}]}
        resp = await client.post(URL, json=body)
        assert resp.status_code == 422
        mock_task.delay.assert_not_called()

    @patch(_PATCH_TARGET)
    async def test_half_range_rejected(self, mock_task, client: AsyncClient, series_payload):
        body = {**series_payload, "factors": [{"name": "DG_COUNT", "min_value": 1}]}
        resp = await client.post(URL, json=body)
        assert resp.status_code == 422

    @patch(_PATCH_TARGET)
    async def test_n_cap(self, mock_task, client: AsyncClient, series_payload):
        body = {**series_payload, "n": 100_000, "factors": [{"name": "DG_COUNT"}]}
        resp = await client.post(URL, json=body)
        assert resp.status_code == 422
        mock_task.delay.assert_not_called()
