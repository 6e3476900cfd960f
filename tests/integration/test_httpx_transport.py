import json

import httpx
import pytest

from ekyc.models.domain.transport_domain import ResponseClass
from ekyc.services.transport.httpx_transport import HttpxTransport

URL = "http://kyc.test/api/v1/verify-document"


def _transport(handler) -> HttpxTransport:
    return HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_posts_json_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "PASS", "confidence": 90})

    transport = _transport(handler)
    response = await transport.raw_call(URL, {"customer_id": "CUST-001"}, 5)
    await transport.close()

    assert seen == {"method": "POST", "body": {"customer_id": "CUST-001"}}
    assert response.response_class is ResponseClass.SUCCESS
    assert json.loads(response.body)["confidence"] == 90


@pytest.mark.asyncio
async def test_server_error_is_reported_not_raised():
    transport = _transport(lambda request: httpx.Response(503, text="unavailable"))

    response = await transport.raw_call(URL, {}, 5)

    assert response.status_code == 503
    assert response.response_class is ResponseClass.SERVER_ERROR


@pytest.mark.asyncio
async def test_timeout_is_reported_as_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    response = await _transport(handler).raw_call(URL, {}, 5)

    assert response.response_class is ResponseClass.TIMEOUT


@pytest.mark.asyncio
async def test_connection_error_is_reported_as_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    response = await _transport(handler).raw_call(URL, {}, 5)

    assert response.response_class is ResponseClass.TRANSPORT_FAILURE
    assert isinstance(response.transport_error, httpx.ConnectError)
