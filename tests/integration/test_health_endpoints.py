"""
Integration tests for the health endpoints.
"""

from app.api.endpoints import health

HEALTH = "/api/v1/health"


async def test_liveness(client):
    response = await client.get(f"{HEALTH}/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_database_healthy(client, monkeypatch):
    async def healthy():
        return {"status": "healthy", "connection_test": True, "error": None}

    monkeypatch.setattr(health, "check_async_database_health", healthy)

    response = await client.get(f"{HEALTH}/database")

    assert response.status_code == 200
    assert response.json()["connection_test"] is True


async def test_database_unhealthy(client, monkeypatch):
    async def unhealthy():
        return {"status": "unhealthy", "connection_test": False, "error": "Database connection test failed"}

    monkeypatch.setattr(health, "check_async_database_health", unhealthy)

    response = await client.get(f"{HEALTH}/database")

    assert response.status_code == 503
    assert response.json()["error"] == "Database connection test failed"
