from __future__ import annotations

import pytest

from eventrank.tests.utils import auth_headers


@pytest.mark.asyncio
async def test_health_reports_ok_without_auth(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_includes_queue_for_authenticated_users(client):
    response = await client.get("/health", headers=auth_headers())
    assert response.status_code == 200
    payload = response.json()
    # Redis is disabled under test, so the queue is reported offline.
    assert payload["status"] == "degraded"
    assert payload["queue"]["status"] == "offline"
