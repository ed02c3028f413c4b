# This project was developed with assistance from AI tools.
"""Health checks against real PostgreSQL."""

import pytest

from dvsubmit import __version__

pytestmark = pytest.mark.integration


async def test_readiness_reports_database(client_factory, personas):
    client = client_factory(personas["abebe"])
    resp = await client.get("/health/ready")
    assert resp.status_code == 200
    data = resp.json()
    assert [item["name"] for item in data] == ["API", "Database"]
    assert all(item["status"] == "healthy" for item in data)
    assert "PostgreSQL" in data[1]["message"]
    await client.aclose()


async def test_liveness_includes_version(client_factory, personas):
    client = client_factory(personas["abebe"])
    resp = await client.get("/health/")
    assert resp.json()[0]["version"] == __version__
    await client.aclose()
