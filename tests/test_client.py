"""
Test Suite: DataForSEO Transport

Uses httpx.MockTransport; no network access.
"""

import base64
import logging

import httpx
import pytest

from src.collector.client import DataForSEOClient
from src.collector.errors import (
    DataForSEOError,
    EnvelopeReason,
    TransportError,
    TransportKind,
    UpstreamStatusError,
)
from src.collector.retry import CostLedger

ENDPOINT = "dataforseo_labs/google/search_intent/live"


def client_for(engine_config, handler) -> DataForSEOClient:
    return DataForSEOClient(engine_config, transport=httpx.MockTransport(handler))


class TestCall:
    """Single-attempt transport behaviour."""

    @pytest.mark.asyncio
    async def test_posts_single_task_array_with_basic_auth(self, client, upstream, make_envelope):
        upstream.add(ENDPOINT, make_envelope([]))

        raw = await client.call(ENDPOINT, {"keywords": ["seo"], "language_code": "en"})

        assert raw["status_code"] == 20000
        endpoint, body = upstream.calls[0]
        assert endpoint == ENDPOINT
        assert body == [{"keywords": ["seo"], "language_code": "en"}]

        expected = base64.b64encode(b"test_login:test_password").decode()
        assert upstream.headers[0]["authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_http_error_status(self, client, upstream):
        upstream.add(ENDPOINT, (402, {"status_code": 40200, "status_message": "Payment Required.", "cost": 0.001}))

        with pytest.raises(TransportError) as exc_info:
            await client.call(ENDPOINT, {})

        error = exc_info.value
        assert error.kind == TransportKind.HTTP_STATUS
        assert error.http_status == 402
        assert error.cost == pytest.approx(0.001)

    @pytest.mark.asyncio
    async def test_http_error_with_text_body(self, client, upstream):
        upstream.add(ENDPOINT, (502, "Bad Gateway"))

        with pytest.raises(TransportError) as exc_info:
            await client.call(ENDPOINT, {})

        assert exc_info.value.http_status == 502
        assert exc_info.value.cost == 0.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exception,kind,code", [
        (httpx.ConnectError("[Errno 111] Connection refused"), TransportKind.NETWORK, "ECONNREFUSED"),
        (httpx.ConnectError("[Errno -2] Name or service not known"), TransportKind.NETWORK, "ENOTFOUND"),
        (httpx.ConnectTimeout("timed out"), TransportKind.TIMEOUT, "ETIMEDOUT"),
        (httpx.ReadTimeout("timed out"), TransportKind.TIMEOUT, "ECONNABORTED"),
        (httpx.RemoteProtocolError("peer closed connection"), TransportKind.NETWORK, "ECONNABORTED"),
    ])
    async def test_transport_failures(self, engine_config, exception, kind, code):
        def handler(request):
            raise exception

        client = client_for(engine_config, handler)

        with pytest.raises(TransportError) as exc_info:
            await client.call(ENDPOINT, {})

        assert exc_info.value.kind == kind
        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_closed_client(self, client):
        await client.close()

        with pytest.raises(DataForSEOError):
            await client.call(ENDPOINT, {})


class TestPost:
    """Retried, envelope-validated requests."""

    @pytest.mark.asyncio
    async def test_retries_server_errors_and_records_cost(self, client, upstream, make_envelope):
        upstream.add(
            ENDPOINT,
            (500, {"status_code": 50000, "status_message": "Internal Error.", "cost": 0}),
            (429, {"status_code": 40202, "status_message": "Rate limit.", "cost": 0}),
            make_envelope([{"items": []}], cost=0.001),
        )
        ledger = CostLedger()

        outcome = await client.post(ENDPOINT, {"keywords": ["seo"]}, ledger=ledger)

        assert outcome.attempts == 3
        assert outcome.value.ok
        assert upstream.count(ENDPOINT) == 3
        assert ledger.total == pytest.approx(0.001)

    @pytest.mark.asyncio
    async def test_unauthorized_single_attempt(self, client, upstream):
        upstream.add(ENDPOINT, (401, {"status_code": 40100, "status_message": "Unauthorized."}))

        with pytest.raises(TransportError) as exc_info:
            await client.post(ENDPOINT, {})

        assert upstream.count(ENDPOINT) == 1
        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_envelope_failure_is_terminal(self, client, upstream, make_envelope):
        upstream.add(ENDPOINT, make_envelope([], cost=0.0, status_code=40501, status_message="Invalid Field."))

        with pytest.raises(UpstreamStatusError) as exc_info:
            await client.post(ENDPOINT, {})

        assert upstream.count(ENDPOINT) == 1
        assert exc_info.value.reason == EnvelopeReason.ENVELOPE_FAILED

    @pytest.mark.asyncio
    async def test_ping(self, engine_config):
        def handler(request):
            assert request.url.path == "/v3/user"
            return httpx.Response(200, json={"status_code": 20000})

        assert await client_for(engine_config, handler).ping() is True

    @pytest.mark.asyncio
    async def test_ping_failure(self, engine_config):
        def handler(request):
            raise httpx.ConnectError("refused")

        assert await client_for(engine_config, handler).ping() is False

    @pytest.mark.asyncio
    async def test_failed_tasks_logged_at_debug(self, client, upstream, make_envelope, caplog):
        upstream.add(ENDPOINT, make_envelope(
            None, cost=0.0, task_status=40501, task_message="Invalid Field: 'location_code'.",
        ))

        with caplog.at_level(logging.DEBUG, logger="src.collector.client"):
            outcome = await client.post(ENDPOINT, {})

        assert outcome.value.ok
        records = [r for r in caplog.records if "failed task(s)" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert "Task 1 failed: Invalid Field: 'location_code'. (code: 40501)" in records[0].warnings

    @pytest.mark.asyncio
    async def test_clean_response_not_logged_at_debug(self, client, upstream, make_envelope, caplog):
        upstream.add(ENDPOINT, make_envelope([{"items": []}]))

        with caplog.at_level(logging.DEBUG, logger="src.collector.client"):
            await client.post(ENDPOINT, {})

        assert not any("failed task(s)" in r.getMessage() for r in caplog.records)
