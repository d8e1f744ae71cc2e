import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cardshare.api.middleware.rate_limiting import RateLimitMiddleware


@pytest.fixture
def limited_client():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, calls=2, period=60)

    @app.post("/cards")
    async def add():
        return {"success": True}

    @app.get("/cards")
    async def listing():
        return []

    return TestClient(app)


def test_writes_over_the_limit_are_rejected(limited_client):
    headers = {"X-Forwarded-For": "10.0.0.1"}

    assert limited_client.post("/cards", headers=headers).status_code == 200
    assert limited_client.post("/cards", headers=headers).status_code == 200
    response = limited_client.post("/cards", headers=headers)

    assert response.status_code == 429
    assert response.json()["detail"]["error_code"] == "RATE_LIMITED"
    assert limited_client.post("/cards", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200


def test_reads_are_not_limited(limited_client):
    for _ in range(5):
        assert limited_client.get("/cards").status_code == 200


def test_idle_clients_are_forgotten():
    middleware = RateLimitMiddleware(None, calls=2, period=60)
    middleware.requests = {"10.0.0.1": [100.0, 150.0], "10.0.0.2": [10.0]}

    middleware.prune(current_time=200.0)

    assert middleware.requests == {"10.0.0.1": [150.0]}

    middleware.prune(current_time=300.0)

    assert middleware.requests == {}
