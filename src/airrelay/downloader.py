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
This module downloads MOENV records for the configured station and merges
them into results ready to be served.

Two access patterns are provided:

- download_window: one request per hour of a window around the reference
  time, all issued at once. Failed hours contribute nothing and are never
  reported as errors.
- lookup_item / lookup_area: a single request for one hour, filtered down
  to one pollutant or one area. Here a failed request is the whole
  answer, so it is raised to the caller.

Configuration is always checked before the first request is made.
"""

import logging
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from datetime import datetime

from .config import Settings
from .decorators import with_logging
from .exceptions import ConfigurationError, InvalidRequestError
from .sources.moenv import fetch_records, fetch_records_by_time
from .time_windows import format_monitor_time, hourly_window, parse_monitor_time
from .transforms import (
    compose,
    concat_records,
    filter_records,
    first_records,
    sort_records,
)
from .types import (
    AREA_FIELDS,
    ITEM_FIELDS,
    TIMESTAMP_FIELD,
    LookupResult,
    WindowFetcher,
    WindowResult,
)

logger = logging.getLogger(__name__)


def _invalid_reference_time() -> ConfigurationError:
    return ConfigurationError(
        "參考時間格式無效，請檢查 REFERENCE_TIME 設定。",
        guidance="REFERENCE_TIME 的格式應為 YYYY-MM-DD HH:mm。",
    )


def reference_window(settings: Settings) -> list[str]:
    """
    Build the monitoring window around the configured reference time.

    Raises:
        ConfigurationError: If the reference time cannot be parsed
    """
    try:
        return hourly_window(settings.reference_time, settings.radius_hours)
    except ValueError as e:
        raise _invalid_reference_time() from e


def _resolve_monitor_date(settings: Settings, monitor_date: str | datetime | None) -> str:
    # A caller-supplied instant is a request parameter, not configuration
    if monitor_date is not None:
        try:
            return format_monitor_time(parse_monitor_time(monitor_date))
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e
    try:
        return format_monitor_time(parse_monitor_time(settings.reference_time))
    except ValueError as e:
        raise _invalid_reference_time() from e


@with_logging()
def download_window(
    settings: Settings, fetch: WindowFetcher = fetch_records_by_time
) -> WindowResult:
    """
    Download every hour of the reference window and merge the results.

    One request is issued per hour, all at once, on a thread pool sized to
    the window. The function waits for every request to settle before
    merging; a request that fails contributes no records. Records are
    sorted by their own ``monitordate``, which can differ from the hour
    they were requested for when upstream data arrives late.

    Args:
        settings: Service settings
        fetch: Per-hour fetcher, called as ``fetch(settings, monitor_date)``

    Returns:
        WindowResult: Time range, successful hour count and sorted records

    Raises:
        ConfigurationError: If the API key is missing or the reference time
            is invalid. Raised before any request is made.

    Example:
        >>> result = download_window(Settings.from_env())
        >>> print(result.summary)
    """
    settings.require_api_key()
    monitor_times = reference_window(settings)

    logger.info(f"Starting batch request for {len(monitor_times)} monitoring hours")

    with ThreadPoolExecutor(max_workers=len(monitor_times)) as executor:
        futures = [executor.submit(fetch, settings, when) for when in monitor_times]
        wait(futures, return_when=ALL_COMPLETED)

    batches = []
    for when, future in zip(monitor_times, futures):
        error = future.exception()
        if error is not None:
            logger.warning(
                f"Error fetching data for {when}: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )
            continue
        batches.append(future.result())

    successful_requests = sum(1 for batch in batches if batch)
    records = sort_records(TIMESTAMP_FIELD)(concat_records(batches))

    logger.info(
        f"Fetched {len(records)} records from {successful_requests}"
        f"/{len(monitor_times)} hours"
    )

    return WindowResult(
        time_range_start=monitor_times[0],
        time_range_end=monitor_times[-1],
        requested_hours=len(monitor_times),
        successful_requests=successful_requests,
        records=records,
    )


def lookup_item(
    settings: Settings,
    item: str,
    monitor_date: str | datetime | None = None,
    fetch=fetch_records,
) -> LookupResult:
    """
    Look up one pollutant at the configured station for a single hour.

    Matches ``itemengname`` or ``itemname`` case-insensitively, so both
    "pm2.5" and "細懸浮微粒" work. At most one record is returned.

    Args:
        settings: Service settings
        item: Pollutant name
        monitor_date: Hour to look up (default: the reference time)
        fetch: Fetcher that raises on failure

    Returns:
        LookupResult: The matching record, or no records if none matched

    Raises:
        ConfigurationError: If the API key is missing or the reference time
            is invalid
        InvalidRequestError: If ``monitor_date`` cannot be parsed
        UpstreamError: If the API answered with an error or malformed body
        requests.RequestException: If the API could not be reached
    """
    settings.require_api_key()
    when = _resolve_monitor_date(settings, monitor_date)

    records = fetch(
        settings, monitor_date=when, site_name=settings.site_name, county=settings.county
    )
    matches = compose(filter_records(ITEM_FIELDS, item), first_records(1))(records)

    if not matches:
        logger.info(f"No '{item}' record for {settings.site_name} at {when}")

    return LookupResult(
        monitor_date=when, filter_field="item", filter_value=item, records=matches
    )


def lookup_area(
    settings: Settings,
    area: str,
    monitor_date: str | datetime | None = None,
    fetch=fetch_records,
) -> LookupResult:
    """
    Look up every record for one area of the configured county.

    A single request is made for the whole county; records are kept when
    their ``sitename`` or ``county`` equals ``area``.

    Args:
        settings: Service settings
        area: Station or county name
        monitor_date: Hour to look up (default: the reference time)
        fetch: Fetcher that raises on failure

    Returns:
        LookupResult: Matching records sorted by ``monitordate``

    Raises:
        ConfigurationError: If the API key is missing or the reference time
            is invalid
        InvalidRequestError: If ``monitor_date`` cannot be parsed
        UpstreamError: If the API answered with an error or malformed body
        requests.RequestException: If the API could not be reached
    """
    settings.require_api_key()
    when = _resolve_monitor_date(settings, monitor_date)

    records = fetch(settings, monitor_date=when, county=settings.county)
    matches = compose(filter_records(AREA_FIELDS, area), sort_records(TIMESTAMP_FIELD))(
        records
    )

    if not matches:
        logger.info(f"No records for area '{area}' at {when}")

    return LookupResult(
        monitor_date=when, filter_field="area", filter_value=area, records=matches
    )
