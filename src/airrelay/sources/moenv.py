# Airrelay: fetch and re-serve Taiwan air quality open data
# Copyright (C) 2025 Ruaraidh Dobson, South London Scientific

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.

# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
This module provides data fetchers for the Taiwan Ministry of Environment
(MOENV) open data platform.

The hourly per-item dataset (aqx_p_152) returns one record per station,
pollutant and hour. Records are returned exactly as the API sends them.

API Documentation: https://data.moenv.gov.tw/en/swagger/
Data Platform: https://data.moenv.gov.tw/
"""

import logging

import requests

from ..config import Settings
from ..decorators import ignore_exceptions
from ..exceptions import UpstreamError
from ..types import Record

logger = logging.getLogger(__name__)

# Upstream bodies echoed back in error responses are cut to this length
MAX_ERROR_BODY = 500


# ============================================================================
# LOW-LEVEL API FUNCTIONS
# ============================================================================


def _call_moenv_api(url: str, params: dict, timeout: float) -> dict:
    """
    Low-level MOENV API caller with error classification.

    Args:
        url: Full dataset URL
        params: Query parameters (including api_key)
        timeout: Transport timeout in seconds

    Returns:
        dict: JSON response from API

    Raises:
        UpstreamError: If the API returns an error status or a body that is
            not a JSON object
        requests.RequestException: If no response was received at all
    """
    response = requests.get(url, params=params, timeout=timeout)

    if not response.ok:
        raise UpstreamError(
            f"MOENV API returned HTTP {response.status_code}",
            status_code=response.status_code,
            body=response.text[:MAX_ERROR_BODY],
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamError(
            "MOENV API returned a body that is not valid JSON",
            status_code=response.status_code,
            body=response.text[:MAX_ERROR_BODY],
        ) from e

    if not isinstance(payload, dict):
        raise UpstreamError(
            "MOENV API returned JSON without a top-level object",
            status_code=response.status_code,
            body=response.text[:MAX_ERROR_BODY],
        )

    return payload


def _extract_records(payload: dict) -> list[Record]:
    """Return the ``records`` array of a response (absent or null → empty)."""
    records = payload.get("records") or []
    if not isinstance(records, list):
        raise UpstreamError("MOENV API returned 'records' that is not a list")
    if not all(isinstance(record, dict) for record in records):
        raise UpstreamError(
            "MOENV API returned records that are not objects",
            body=repr(records)[:MAX_ERROR_BODY],
        )
    return records


def build_params(
    settings: Settings,
    monitor_date: str | None = None,
    site_name: str | None = None,
    county: str | None = None,
) -> dict:
    """
    Build query parameters for a dataset request.

    Selector parameters left as None are omitted, so the API does not
    filter on them.

    Args:
        settings: Service settings (API key, limit)
        monitor_date: Monitoring instant as "YYYY-MM-DD HH:00"
        site_name: Station name
        county: County name

    Returns:
        dict: Query parameters
    """
    params = {
        "api_key": settings.api_key,
        "sitename": site_name,
        "county": county,
        "monitordate": monitor_date,
        "limit": settings.limit,
        "format": "json",
    }
    return {key: value for key, value in params.items() if value is not None}


# ============================================================================
# DATA FETCHERS
# ============================================================================


def fetch_records(
    settings: Settings,
    monitor_date: str | None = None,
    site_name: str | None = None,
    county: str | None = None,
) -> list[Record]:
    """
    Fetch the records for one selector, surfacing every failure.

    Args:
        settings: Service settings
        monitor_date: Monitoring instant as "YYYY-MM-DD HH:00"
        site_name: Station name (None: no station filter)
        county: County name (None: no county filter)

    Returns:
        list[Record]: Upstream records, possibly empty

    Raises:
        UpstreamError: On an error status or malformed body
        requests.RequestException: On network failure
    """
    params = build_params(settings, monitor_date, site_name, county)
    logger.debug(
        f"Requesting {settings.resource_id} for {site_name or '*'}/{county or '*'} "
        f"at {monitor_date or 'latest'}"
    )
    payload = _call_moenv_api(settings.endpoint, params, timeout=settings.timeout)
    return _extract_records(payload)


@ignore_exceptions(requests.RequestException, UpstreamError, default_factory=list)
def fetch_records_by_time(settings: Settings, monitor_date: str) -> list[Record]:
    """
    Fetch the configured station's records for one monitoring instant.

    Any upstream or network failure is logged and turned into an empty
    list, so one bad hour cannot spoil a batched window. Nothing is
    retried.

    Args:
        settings: Service settings
        monitor_date: Monitoring instant as "YYYY-MM-DD HH:00"

    Returns:
        list[Record]: Records for that hour (empty on failure)
    """
    logger.debug(f"-> Fetching records for {monitor_date}")
    return fetch_records(
        settings,
        monitor_date=monitor_date,
        site_name=settings.site_name,
        county=settings.county,
    )
