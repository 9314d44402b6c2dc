import httpx

from opshub.core.config import settings
from opshub.main import app


async def test_health_needs_no_session():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/v1/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["service"] == settings.service_name


async def test_unknown_routes_are_404(client):
    r = await client.get("/v1/nothing-here")
    assert r.status_code == 404
