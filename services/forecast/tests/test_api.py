"""
API envelope and routing tests.

Tests:
- Health check endpoint
- GET /weatherforecast success / no-data / validation / cache-down envelopes
- requestId on every response
"""

import pytest


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health returns envelope with status and version."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_envelope_shape(self, client):
        body = (await client.get("/health")).json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert "version" in body["data"]

    @pytest.mark.asyncio
    async def test_custom_request_id_header(self, client):
        response = await client.get("/health", headers={"x-request-id": "test-req-12345"})
        assert response.headers["x-request-id"] == "test-req-12345"
        assert response.json()["requestId"] == "test-req-12345"


# ---------------------------------------------------------------------------
# Forecast endpoint
# ---------------------------------------------------------------------------

class TestForecastEndpoint:
    @pytest.mark.asyncio
    async def test_returns_periods(self, client, upstream):
        response = await client.get("/weatherforecast", params={"latitude": 39.74, "longitude": -104.99})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [p["number"] for p in body["data"]["periods"]] == [1, 2]
        assert isinstance(body["data"]["elapsedMilliseconds"], int)
        assert "requestId" in body
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_periods_match_upstream_exactly(self, client, upstream):
        upstream.forecast_body = {
            "properties": {"periods": [{"number": 1, "temperature": {"unitCode": "wmoUnit:degC", "value": -2.2}}]}
        }

        response = await client.get("/weatherforecast", params={"latitude": 39.74, "longitude": -104.99})

        assert response.json()["data"]["periods"] == [
            {"number": 1, "temperature": {"unitCode": "wmoUnit:degC", "value": -2.2}}
        ]

    @pytest.mark.asyncio
    async def test_second_request_served_from_cache(self, client, upstream, fake_clock):
        params = {"latitude": 39.74, "longitude": -104.99}
        first = (await client.get("/weatherforecast", params=params)).json()
        fake_clock.advance(2)
        second = (await client.get("/weatherforecast", params=params)).json()

        assert len(upstream.requests) == 2
        assert second["data"]["periods"] == first["data"]["periods"]

    @pytest.mark.asyncio
    async def test_no_data_is_null_not_error(self, client, upstream):
        upstream.points_status = 404

        response = await client.get("/weatherforecast", params={"latitude": 51.5, "longitude": -0.12})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] is None

    @pytest.mark.asyncio
    async def test_missing_parameter_is_validation_error(self, client):
        response = await client.get("/weatherforecast", params={"latitude": 39.74})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_non_numeric_parameter_is_validation_error(self, client):
        response = await client.get("/weatherforecast", params={"latitude": "north", "longitude": 1})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_non_finite_parameter_rejected(self, client, upstream):
        response = await client.get("/weatherforecast", params={"latitude": "nan", "longitude": 1})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_cache_down_returns_503_envelope(self, client, fake_redis):
        fake_redis.fail = True

        response = await client.get("/weatherforecast", params={"latitude": 39.74, "longitude": -104.99})

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "CACHE_UNAVAILABLE"
        assert "requestId" in body

    @pytest.mark.asyncio
    async def test_unknown_route_is_404_envelope(self, client):
        response = await client.get("/nonexistent-route")
        body = response.json()
        assert response.status_code == 404
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"
