"""
Tests for server.py - the HTTP surface.

Upstream calls are mocked with `responses`; the Flask test client drives
the endpoints.
"""

import json
from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses

from airrelay.downloader import reference_window
from airrelay.server import create_app

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def unconfigured_client(settings_without_key):
    app = create_app(settings_without_key)
    app.config["TESTING"] = True
    return app.test_client()


# ============================================================================
# Tests for GET /taitung-air-data
# ============================================================================


@responses.activate
def test_window_success_body(client, settings, moenv_url, record_factory):
    """Test the batch endpoint's body for a partly successful window."""
    window = reference_window(settings)
    good = {window[0], window[36]}

    def callback(request):
        when = parse_qs(urlparse(request.url).query)["monitordate"][0]
        if when in good:
            return (200, {}, json.dumps({"records": [record_factory(when)]}))
        return (503, {}, "busy")

    responses.add_callback(responses.GET, moenv_url, callback=callback)

    response = client.get("/taitung-air-data")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "success"
    assert body["time_range_start"] == "2025-11-25 05:00"
    assert body["time_range_end"] == "2025-11-28 05:00"
    assert body["summary"] == "成功取得 2 個小時，共 2 筆測項紀錄。"
    assert [r["monitordate"] for r in body["data"]] == sorted(good)
    assert "message" not in body


@responses.activate
def test_window_all_failures_is_success(client, moenv_url):
    """Test that a window where every hour fails is still a 200."""
    responses.add(
        responses.GET, moenv_url, body=requests.exceptions.ConnectionError("down")
    )

    response = client.get("/taitung-air-data")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "success"
    assert body["data"] == []
    assert body["summary"] == "成功取得 0 個小時，共 0 筆測項紀錄。"
    assert body["message"]


@responses.activate
def test_window_missing_key_is_config_error(unconfigured_client):
    """Test that a missing key answers with a config error and no upstream call."""
    response = unconfigured_client.get("/taitung-air-data")
    body = response.get_json()

    assert response.status_code == 500
    assert body["status"] == "config_error"
    assert "API Key" in body["error"]
    assert "API_KEY" in body["guidance"]
    assert len(responses.calls) == 0


@responses.activate
def test_window_invalid_reference_is_config_error(settings):
    """Test that an invalid reference time is a config error."""
    app = create_app(replace(settings, reference_time="26/11/2025 5pm"))
    response = app.test_client().get("/taitung-air-data")

    assert response.status_code == 500
    assert response.get_json()["status"] == "config_error"
    assert len(responses.calls) == 0


@responses.activate
def test_window_returns_chinese_unescaped(client, moenv_url):
    """Test that Chinese text is served as UTF-8 rather than \\u escapes."""
    responses.add(responses.GET, moenv_url, json={"records": []})

    response = client.get("/taitung-air-data")

    assert "成功取得".encode("utf-8") in response.data


# ============================================================================
# Tests for GET /taitung-air-data/items/<item>
# ============================================================================


@responses.activate
def test_item_found(client, moenv_url, hourly_records):
    """Test that the matching pollutant record is returned."""
    responses.add(responses.GET, moenv_url, json={"records": hourly_records})

    response = client.get("/taitung-air-data/items/PM2.5")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "success"
    assert body["item"] == "PM2.5"
    assert body["monitordate"] == "2025-11-26 17:00"
    assert body["data"] == hourly_records[0]
    assert len(responses.calls) == 1


@responses.activate
def test_item_not_found(client, moenv_url, hourly_records):
    """Test that a missing pollutant is a 404, not an error or empty success."""
    responses.add(responses.GET, moenv_url, json={"records": hourly_records})

    response = client.get("/taitung-air-data/items/SO2")
    body = response.get_json()

    assert response.status_code == 404
    assert body["status"] == "not_found"
    assert body["item"] == "SO2"


@responses.activate
def test_item_with_requested_hour(client, moenv_url):
    """Test that ?monitordate= selects the hour requested upstream."""
    responses.add(responses.GET, moenv_url, json={"records": []})

    client.get(
        "/taitung-air-data/items/PM2.5", query_string={"monitordate": "2025-11-20 09:00"}
    )

    sent = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert sent["monitordate"] == ["2025-11-20 09:00"]


@responses.activate
def test_item_with_invalid_hour(client):
    """Test that an unparsable ?monitordate= is a 400 with no upstream call."""
    response = client.get(
        "/taitung-air-data/items/PM2.5", query_string={"monitordate": "tomorrow"}
    )

    assert response.status_code == 400
    assert response.get_json()["status"] == "bad_request"
    assert len(responses.calls) == 0


@responses.activate
def test_item_upstream_error_is_surfaced(client, moenv_url):
    """Test that an upstream error status is echoed to the caller."""
    responses.add(responses.GET, moenv_url, status=401, body="invalid key")

    response = client.get("/taitung-air-data/items/PM2.5")
    body = response.get_json()

    assert response.status_code == 502
    assert body["status"] == "upstream_error"
    assert body["upstream_status"] == 401
    assert body["upstream_body"] == "invalid key"


@responses.activate
def test_item_malformed_record_elements_is_upstream_error(client, moenv_url):
    """Test that a records array of non-objects is an upstream error."""
    responses.add(responses.GET, moenv_url, json={"records": ["oops", None]})

    response = client.get("/taitung-air-data/items/PM2.5")

    assert response.status_code == 502
    assert response.get_json()["status"] == "upstream_error"


@responses.activate
def test_item_network_error_is_distinct(client, moenv_url):
    """Test that no response at all is reported as a network error."""
    responses.add(
        responses.GET, moenv_url, body=requests.exceptions.ConnectionError("down")
    )

    response = client.get("/taitung-air-data/items/PM2.5")
    body = response.get_json()

    assert response.status_code == 502
    assert body["status"] == "network_error"


@responses.activate
def test_same_fault_differs_between_batch_and_single(client, moenv_url):
    """Test that a transport fault is empty success in batch, error in single."""
    responses.add(
        responses.GET, moenv_url, body=requests.exceptions.ConnectionError("down")
    )

    batch = client.get("/taitung-air-data")
    single = client.get("/taitung-air-data/items/PM2.5")

    assert batch.status_code == 200
    assert batch.get_json()["status"] == "success"
    assert single.status_code == 502
    assert single.get_json()["status"] != "success"


def test_item_missing_key(unconfigured_client):
    """Test that lookups also report a missing key as configuration."""
    response = unconfigured_client.get("/taitung-air-data/items/PM2.5")

    assert response.status_code == 500
    assert response.get_json()["status"] == "config_error"


# ============================================================================
# Tests for GET /taitung-air-data/areas/<area>
# ============================================================================


@responses.activate
def test_area_found(client, moenv_url, county_records):
    """Test that records for the requested station are returned."""
    responses.add(responses.GET, moenv_url, json={"records": county_records})

    response = client.get("/taitung-air-data/areas/關山")
    body = response.get_json()

    assert response.status_code == 200
    assert body["area"] == "關山"
    assert [r["sitename"] for r in body["data"]] == ["關山", "關山"]
    sent = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert "sitename" not in sent
    assert sent["county"] == ["臺東縣"]


@responses.activate
def test_area_not_found(client, moenv_url, county_records):
    """Test that an unknown area is a 404."""
    responses.add(responses.GET, moenv_url, json={"records": county_records})

    response = client.get("/taitung-air-data/areas/花蓮")

    assert response.status_code == 404
    assert response.get_json()["status"] == "not_found"


# ============================================================================
# Tests for other routes and generic errors
# ============================================================================


def test_healthz(unconfigured_client):
    """Test the liveness probe needs no configuration."""
    response = unconfigured_client.get("/healthz")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_unknown_route_is_json(client):
    """Test that routing errors are JSON too."""
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.get_json()["status"] == "error"


def test_unexpected_error_is_json(client, monkeypatch):
    """Test that an unexpected exception becomes a 500 JSON body."""

    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("airrelay.downloader.lookup_item", explode)

    response = client.get("/taitung-air-data/items/PM2.5")

    assert response.status_code == 500
    assert response.get_json()["status"] == "internal_error"
