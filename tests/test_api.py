"""Tests for the HTTP API and the redirect route."""

from datetime import timedelta

import httpx
import pytest

from shortlinks.config import Config
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.shortcode import ShortCodeGenerator
from shortlinks.web_app import create_app

from .conftest import T0


def build_client(store, registry, **config_overrides) -> httpx.AsyncClient:
    config = Config(base_url="http://testserver", **config_overrides)
    app = create_app(store, registry, config)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture
async def client(store, registry):
    async with build_client(store, registry) as c:
        yield c


async def create_link(client, **body):
    body.setdefault("url", "https://example.com/landing")
    response = await client.post("/api/links", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateEndpoint:

    @pytest.mark.asyncio
    async def test_create(self, client):
        data = await create_link(client, validity_minutes=60, owner="user-1")

        assert len(data["code"]) == 6
        assert data["short_url"] == f"http://testserver/r/{data['code']}"
        assert data["destination"] == "https://example.com/landing"
        assert data["owner"] == "user-1"
        assert data["status"] == "live"
        assert data["click_count"] == 0

    @pytest.mark.asyncio
    async def test_default_validity(self, client, registry):
        data = await create_link(client, custom_code="dflt")

        record = await registry.get(data["code"])
        assert record.expires_at - record.created_at == timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_custom_code(self, client):
        data = await create_link(client, custom_code="my-link", validity_minutes=5)
        assert data["code"] == "my-link"

    @pytest.mark.asyncio
    async def test_blank_custom_code_generates(self, client):
        data = await create_link(client, custom_code="   ")
        assert len(data["code"]) == 6

    @pytest.mark.asyncio
    async def test_duplicate_custom_code(self, client):
        await create_link(client, custom_code="taken")

        response = await client.post(
            "/api/links", json={"url": "https://example.com/other", "custom_code": "taken"}
        )

        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_invalid_url(self, client):
        response = await client.post("/api/links", json={"url": "ftp://x.com"})

        assert response.status_code == 400
        assert "Invalid URL" in response.json()["detail"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("minutes", [0, -1])
    async def test_invalid_validity(self, client, minutes):
        response = await client.post(
            "/api/links", json={"url": "https://example.com", "validity_minutes": minutes}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("minutes", [True, False, "30"])
    async def test_non_numeric_validity(self, client, minutes):
        response = await client.post(
            "/api/links", json={"url": "https://example.com", "validity_minutes": minutes}
        )

        assert response.status_code == 422
        assert (await client.get("/api/links")).json() == []

    @pytest.mark.asyncio
    async def test_fractional_validity(self, client, registry):
        data = await create_link(client, validity_minutes=1.5)

        record = await registry.get(data["code"])
        assert record.expires_at - record.created_at == timedelta(seconds=90)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["ab", "bad code", "api", "x" * 40])
    async def test_malformed_custom_code(self, client, code):
        response = await client.post(
            "/api/links", json={"url": "https://example.com", "custom_code": code}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_custom_codes_disabled(self, store, clock):
        registry = LinkRegistry(store=store, enable_custom_codes=False, clock=clock)

        async with build_client(store, registry) as client:
            response = await client.post(
                "/api/links", json={"url": "https://example.com", "custom_code": "mine"}
            )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_code_space_exhausted(self, store, clock):
        generator = ShortCodeGenerator(default_length=1, alphabet="x")
        registry = LinkRegistry(
            store=store, short_code_generator=generator, max_collision_retries=3, clock=clock
        )

        async with build_client(store, registry) as client:
            await create_link(client)
            response = await client.post("/api/links", json={"url": "https://example.com"})

        assert response.status_code == 503


class TestLinkEndpoints:

    @pytest.mark.asyncio
    async def test_list_newest_first(self, client, clock):
        await create_link(client, custom_code="first", owner="alice")
        clock.advance(minutes=1)
        await create_link(client, custom_code="second", owner="bob")
        clock.advance(minutes=1)
        await create_link(client, custom_code="third", owner="alice")

        response = await client.get("/api/links")
        assert [item["code"] for item in response.json()] == ["third", "second", "first"]

        response = await client.get("/api/links", params={"owner": "alice"})
        assert [item["code"] for item in response.json()] == ["third", "first"]

    @pytest.mark.asyncio
    async def test_list_reports_expired_status(self, client, clock):
        await create_link(client, custom_code="brief", validity_minutes=1)
        clock.advance(minutes=2)

        response = await client.get("/api/links")

        assert response.json()[0]["status"] == "expired"

    @pytest.mark.asyncio
    async def test_detail_with_clicks(self, client):
        await create_link(client, custom_code="abc", validity_minutes=60)
        await client.get("/r/abc", headers={"Referer": "https://news.example"})
        await client.get("/r/abc")

        response = await client.get("/api/links/abc")

        assert response.status_code == 200
        data = response.json()
        assert data["click_count"] == 2
        assert [c["source"] for c in data["clicks"]] == ["https://news.example", "direct"]

    @pytest.mark.asyncio
    async def test_detail_not_found(self, client):
        response = await client.get("/api/links/nonexistent")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client):
        await create_link(client, custom_code="abc")

        response = await client.delete("/api/links/abc")
        assert response.status_code == 204

        assert (await client.get("/api/links/abc")).status_code == 404
        assert (await client.delete("/api/links/abc")).status_code == 404

        # The code is free again
        data = await create_link(client, custom_code="abc", url="https://example.com/new")
        assert data["click_count"] == 0


class TestSimulateEndpoint:

    @pytest.mark.asyncio
    async def test_simulate_live(self, client, registry):
        await create_link(client, custom_code="abc", validity_minutes=60)

        response = await client.post("/api/links/abc/simulate")

        assert response.status_code == 200
        assert response.json()["outcome"] == "redirect"
        assert response.json()["destination"] == "https://example.com/landing"
        record = await registry.get("abc")
        assert record.clicks[0].source == "manual-sim"

    @pytest.mark.asyncio
    async def test_simulate_with_source(self, client, registry):
        await create_link(client, custom_code="abc", validity_minutes=60)

        await client.post("/api/links/abc/simulate", json={"source": "qr-code"})

        assert (await registry.get("abc")).clicks[0].source == "qr-code"

    @pytest.mark.asyncio
    async def test_simulate_expired(self, client, clock, registry):
        await create_link(client, custom_code="abc", validity_minutes=30)
        clock.advance(minutes=30)

        response = await client.post("/api/links/abc/simulate")

        assert response.status_code == 410
        assert response.json()["outcome"] == "expired"
        assert (await registry.get("abc")).click_count == 0

    @pytest.mark.asyncio
    async def test_simulate_not_found(self, client):
        response = await client.post("/api/links/nonexistent/simulate")

        assert response.status_code == 404
        assert response.json()["outcome"] == "not_found"


class TestRedirect:

    @pytest.mark.asyncio
    async def test_redirect(self, client, registry):
        await create_link(client, custom_code="abc", validity_minutes=60)

        response = await client.get("/r/abc")

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/landing"
        assert (await registry.get("abc")).clicks[0].source == "direct"

    @pytest.mark.asyncio
    async def test_redirect_records_referer(self, client, registry):
        await create_link(client, custom_code="abc", validity_minutes=60)

        await client.get("/r/abc", headers={"Referer": "https://blog.example/post"})

        assert (await registry.get("abc")).clicks[0].source == "https://blog.example/post"

    @pytest.mark.asyncio
    async def test_redirect_not_found(self, client):
        response = await client.get("/r/nonexistent")

        assert response.status_code == 404
        assert "not found" in response.text

    @pytest.mark.asyncio
    async def test_not_found_page_escapes_code(self, client):
        response = await client.get("/r/%3Cimg%20src%3Dx%20onerror%3Dalert(1)%3E")

        assert response.status_code == 404
        assert "<img" not in response.text
        assert "&lt;img src=x onerror=alert(1)&gt;" in response.text

    @pytest.mark.asyncio
    async def test_expired_page_escapes_code(self, client, clock, registry):
        # The core stores any code as given; only the HTTP schema restricts the format
        await registry.create("https://example.com", validity_minutes=1,
                              requested_code="<b>bold")
        clock.advance(minutes=5)

        response = await client.get("/r/%3Cb%3Ebold")

        assert response.status_code == 410
        assert "<b>" not in response.text
        assert "&lt;b&gt;bold" in response.text

    @pytest.mark.asyncio
    async def test_redirect_expired(self, client, clock, registry):
        await create_link(client, custom_code="abc", validity_minutes=30)
        clock.advance(minutes=31)

        response = await client.get("/r/abc")

        assert response.status_code == 410
        assert "expired" in response.text
        assert (await registry.get("abc")).click_count == 0

    @pytest.mark.asyncio
    async def test_custom_path_prefix(self, store, registry):
        async with build_client(store, registry, path_prefix="/go") as client:
            data = await create_link(client, custom_code="abc")
            response = await client.get("/go/abc")

        assert data["short_url"] == "http://testserver/go/abc"
        assert response.status_code == 302


class TestServiceEndpoints:

    @pytest.mark.asyncio
    async def test_stats(self, client):
        await create_link(client, custom_code="abc", validity_minutes=60)
        await client.get("/r/abc")

        response = await client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "total_links": 1,
            "live_links": 1,
            "expired_links": 0,
            "total_clicks": 1,
            "storage": "memory",
            "custom_codes_enabled": True,
        }

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["storage"] == "healthy"
        assert response.json()["timestamp"].startswith("2024-01-01T12:00:00")
