"""Pruebas de descarga del feed en vivo.

Tests for the live feed download.
"""

import asyncio

import httpx
import pytest

from nirvachan.download import FeedError, build_client, build_feed_headers, fetch_feed

pytest.importorskip("pytest_httpx")

FEED_URL = "https://result.example.test/JSONFiles/Election2082/Common/HoRPRResult.txt"


def _fetch(url=FEED_URL, headers=None):
    async def run():
        async with build_client(5.0) as client:
            return await fetch_feed(client, url, headers)

    return asyncio.run(run())


def test_fetch_feed_returns_rows(httpx_mock):
    httpx_mock.add_response(
        url=FEED_URL,
        json=[{"DistrictName": "झापा", "SCConstID": "1"}, "junk", {"DistrictName": "इलाम"}],
    )

    rows = _fetch()

    assert rows == [{"DistrictName": "झापा", "SCConstID": "1"}, {"DistrictName": "इलाम"}]
    request = httpx_mock.get_request()
    assert request.headers["X-Requested-With"] == "XMLHttpRequest"
    assert request.headers["Referer"] == "https://result.election.gov.np/"


def test_fetch_feed_sends_configured_cookie(httpx_mock):
    httpx_mock.add_response(url=FEED_URL, json=[])

    _fetch(headers=build_feed_headers("https://ref.example.test/", "ASP.NET_SessionId=abc"))

    request = httpx_mock.get_request()
    assert request.headers["Cookie"] == "ASP.NET_SessionId=abc"
    assert request.headers["Referer"] == "https://ref.example.test/"


@pytest.mark.parametrize("status_code", [406, 500])
def test_fetch_feed_rejects_non_success_status(httpx_mock, status_code):
    httpx_mock.add_response(url=FEED_URL, status_code=status_code)
    with pytest.raises(FeedError):
        _fetch()


def test_fetch_feed_wraps_network_errors(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectTimeout("timeout"))
    with pytest.raises(FeedError):
        _fetch()


def test_fetch_feed_rejects_malformed_json(httpx_mock):
    httpx_mock.add_response(url=FEED_URL, content=b"<html>maintenance</html>")
    with pytest.raises(FeedError):
        _fetch()


def test_fetch_feed_rejects_non_list_body(httpx_mock):
    httpx_mock.add_response(url=FEED_URL, json={"rows": []})
    with pytest.raises(FeedError):
        _fetch()


def test_default_headers_have_no_cookie():
    headers = build_feed_headers()
    assert "Cookie" not in headers
    assert "Nirvachan/" in headers["User-Agent"]
