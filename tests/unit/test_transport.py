"""
Unit tests for the HTTP collector transport.
"""

import json

import httpx
import pytest

from skillgate.sync.transport import (
    CollectorUnreachable,
    HttpCollectorTransport,
    TransportError,
    encode_batch,
)

COLLECTOR_URL = "https://collector.test/v1/telemetry"


def make_transport(handler) -> HttpCollectorTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCollectorTransport(COLLECTOR_URL, client=client)


def test_encode_batch_keeps_order_and_uses_json_types(events):
    first = events.visit("icp_analysis")
    second = events.export("business_case", "pdf")

    body = encode_batch([first, second])

    assert [e["id"] for e in body["events"]] == [str(first.id), str(second.id)]
    assert body["events"][1]["export_format"] == "pdf"
    json.dumps(body)


@pytest.mark.asyncio
async def test_send_posts_events_body(events):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, str(request.url), json.loads(request.content)))
        return httpx.Response(204)

    transport = make_transport(handler)
    item = events.action("cost_calculator", "variable_adjustment")
    await transport.send([item])

    method, url, body = seen[0]
    assert method == "POST"
    assert url == COLLECTOR_URL
    assert body["events"][0]["action_type"] == "variable_adjustment"


@pytest.mark.asyncio
async def test_server_error_is_a_plain_transport_error(events):
    transport = make_transport(lambda request: httpx.Response(500))

    with pytest.raises(TransportError) as exc_info:
        await transport.send([events.visit("icp_analysis")])
    assert not isinstance(exc_info.value, CollectorUnreachable)
    assert "500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_failure_means_unreachable(events):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler)
    with pytest.raises(CollectorUnreachable):
        await transport.send([events.visit("icp_analysis")])


@pytest.mark.asyncio
async def test_timeout_means_unreachable(events):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    transport = make_transport(handler)
    with pytest.raises(CollectorUnreachable):
        await transport.send([events.visit("icp_analysis")])


@pytest.mark.asyncio
async def test_probe_accepts_any_status():
    transport = make_transport(lambda request: httpx.Response(405))
    assert await transport.probe() is True


@pytest.mark.asyncio
async def test_probe_fails_when_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler)
    assert await transport.probe() is False


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    transport = HttpCollectorTransport(COLLECTOR_URL, client=client)

    await transport.aclose()

    assert client.is_closed is False
    await client.aclose()
