import asyncio

import httpx
import pytest

from app.infrastructure.geo import UNKNOWN_CITY, LocalityResolver

URL = "https://geo.example.test/reverse"

def _resolver(handler, calls=None):
    def recording(request):
        if calls is not None:
            calls.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    return LocalityResolver(URL, default_city="北京", client=client)

@pytest.mark.parametrize("address,expected", [
    ({"city": "上海市", "town": "x", "county": "y"}, "上海市"),
    ({"town": "昆山", "county": "y"}, "昆山"),
    ({"county": "余杭区"}, "余杭区"),
    ({}, UNKNOWN_CITY),
])
def test_city_town_county_fallback(address, expected):
    resolver = _resolver(lambda request: httpx.Response(200, json={"address": address}))
    locality = asyncio.run(resolver.resolve(31.23, 121.47))
    assert locality.city_name == expected

def test_query_parameters():
    calls = []
    resolver = _resolver(lambda request: httpx.Response(200, json={"address": {"city": "成都"}}), calls)
    asyncio.run(resolver.resolve(30.66, 104.06))
    params = calls[0].url.params
    assert params["format"] == "json"
    assert params["lat"] == "30.66"
    assert params["lon"] == "104.06"
    assert params["zoom"] == "10"

def test_missing_coordinates_use_default():
    resolver = _resolver(lambda request: pytest.fail("should not call geocoder"))
    assert asyncio.run(resolver.resolve()).city_name == "北京"
    assert asyncio.run(resolver.resolve(30.0, None)).city_name == "北京"

def test_http_error_falls_back_to_default():
    resolver = _resolver(lambda request: httpx.Response(503))
    assert asyncio.run(resolver.resolve(31.0, 121.0)).city_name == "北京"

def test_transport_error_falls_back_to_default():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    resolver = _resolver(handler)
    assert asyncio.run(resolver.resolve(31.0, 121.0)).city_name == "北京"

def test_invalid_json_falls_back_to_default():
    resolver = _resolver(lambda request: httpx.Response(200, content=b"<html>"))
    assert asyncio.run(resolver.resolve(31.0, 121.0)).city_name == "北京"

def test_results_are_cached():
    calls = []
    resolver = _resolver(lambda request: httpx.Response(200, json={"address": {"city": "武汉"}}), calls)

    async def scenario():
        first = await resolver.resolve(30.5928, 114.3052)
        second = await resolver.resolve(30.5929, 114.3051)
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second
    assert len(calls) == 1

@pytest.mark.parametrize("body", [
    [],
    {"error": "Unable to geocode"},
    {"address": None},
    {"address": "上海"},
])
def test_response_without_address_falls_back_to_default(body):
    resolver = _resolver(lambda request: httpx.Response(200, json=body))
    assert asyncio.run(resolver.resolve(31.0, 121.0)).city_name == "北京"

def test_fallback_is_not_cached():
    responses = iter([
        httpx.Response(200, json={"error": "Unable to geocode"}),
        httpx.Response(200, json={"address": {"city": "上海市"}}),
    ])
    resolver = _resolver(lambda request: next(responses))

    async def scenario():
        first = await resolver.resolve(31.23, 121.47)
        second = await resolver.resolve(31.23, 121.47)
        return first.city_name, second.city_name

    assert asyncio.run(scenario()) == ("北京", "上海市")
