from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from errors import DecodeError, TransportError
from models.records import AreaReading
from services.fetcher import ParkingApiClient

API_URL = "https://parking.test/api/list"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> ParkingApiClient:
    return ParkingApiClient(url=API_URL, timeout=1.0, transport=httpx.MockTransport(handler))


def _payload(**overrides) -> dict:
    body = {
        "success": True,
        "msparkingData": [
            {"areaCode": 12, "areaFreeSpaceNum": 5},
            {"areaCode": 2, "areaFreeSpaceNum": 0},
        ],
        "date": "2024-01-01 12:00:00",
    }
    body.update(overrides)
    return body


def test_fetch_decodes_wire_field_names() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_payload())

    with _client(handler) as client:
        response = client.fetch()

    assert response.success is True
    assert response.date == "2024-01-01 12:00:00"
    assert response.readings == [AreaReading(12, 5), AreaReading(2, 0)]
    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert str(requests[0].url) == API_URL


def test_fetch_accepts_explicit_url() -> None:
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=_payload(msparkingData=[]))

    with _client(handler) as client:
        response = client.fetch("https://other.test/data")

    assert seen == ["https://other.test/data"]
    assert response.readings == []


def test_fetch_ignores_unknown_keys() -> None:
    body = _payload(extra="value")
    body["msparkingData"][0]["areaName"] = "B25"

    with _client(lambda request: httpx.Response(200, json=body)) as client:
        response = client.fetch()

    assert response.readings[0] == AreaReading(12, 5)


def test_connection_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client, pytest.raises(TransportError):
        client.fetch()


def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with _client(handler) as client, pytest.raises(TransportError):
        client.fetch()


def test_error_status_raises_transport_error() -> None:
    with _client(lambda request: httpx.Response(503, text="maintenance")) as client:
        with pytest.raises(TransportError, match="503"):
            client.fetch()


def test_invalid_json_raises_decode_error() -> None:
    with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(DecodeError):
            client.fetch()


@pytest.mark.parametrize(
    "body",
    [
        {"success": True, "date": "2024-01-01"},
        {"success": True, "data": [], "date": "2024-01-01"},
        {"success": True, "msparkingData": [{"areaCode": 12}], "date": "2024-01-01"},
        {"success": True, "msparkingData": [{"areaCode": "B", "areaFreeSpaceNum": 1}], "date": "x"},
        {"msparkingData": [], "date": "2024-01-01"},
        {"success": "yes", "msparkingData": [], "date": "2024-01-01"},
        {"success": 1, "msparkingData": [], "date": "2024-01-01"},
        {"success": True, "msparkingData": [{"areaCode": "12", "areaFreeSpaceNum": 5}], "date": "x"},
        {"success": True, "msparkingData": [{"areaCode": 12, "areaFreeSpaceNum": 5.0}], "date": "x"},
        {"success": True, "msparkingData": [{"areaCode": 12, "areaFreeSpaceNum": "5"}], "date": "x"},
        {"success": True, "msparkingData": [], "date": 20240101},
    ],
)
def test_schema_mismatch_raises_decode_error(body: dict) -> None:
    content = json.dumps(body).encode("utf-8")
    with _client(lambda request: httpx.Response(200, content=content)) as client:
        with pytest.raises(DecodeError):
            client.fetch()


@pytest.mark.parametrize("url", ["http://a:bad/x", "http://[::1/x"])
def test_malformed_url_raises_transport_error(url: str) -> None:
    client = ParkingApiClient(url=url, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with client, pytest.raises(TransportError):
        client.fetch()
