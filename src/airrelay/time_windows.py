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
Hourly monitoring windows.

The MOENV API is queried one hour at a time, so a window is simply the
list of hour-granular instants to ask for, formatted the way the API
expects them ("YYYY-MM-DD HH:00").

Example:
    >>> window = hourly_window("2025-11-26 00:00", radius_hours=36)
    >>> len(window), window[0], window[-1]
    (73, '2025-11-24 12:00', '2025-11-27 12:00')
"""

from datetime import datetime

import pandas as pd

DEFAULT_RADIUS_HOURS = 36

MONITOR_TIME_FORMAT = "%Y-%m-%d %H:00"


def parse_monitor_time(value: str | datetime) -> pd.Timestamp:
    """
    Parse a monitoring instant and truncate it to the hour.

    Accepts "YYYY-MM-DD HH:MM", ISO 8601 strings ("2025-11-26T17:00") and
    datetime objects. Parsing is locale independent.

    Args:
        value: String or datetime to parse

    Returns:
        pd.Timestamp: The instant with minutes and seconds zeroed

    Raises:
        ValueError: If the value is empty or cannot be parsed
    """
    if isinstance(value, datetime):
        timestamp = pd.Timestamp(value)
    elif isinstance(value, str) and value.strip():
        try:
            timestamp = pd.to_datetime(value.strip(), format="ISO8601")
        except (ValueError, TypeError) as e:
            raise ValueError(f"Unparsable monitoring time: {value!r}") from e
    else:
        raise ValueError(f"Unparsable monitoring time: {value!r}")

    if pd.isna(timestamp):
        raise ValueError(f"Unparsable monitoring time: {value!r}")

    return timestamp.floor("h")


def format_monitor_time(timestamp: datetime) -> str:
    """Format an instant as the API's "YYYY-MM-DD HH:00"."""
    return timestamp.strftime(MONITOR_TIME_FORMAT)


def hourly_window(
    reference: str | datetime, radius_hours: int = DEFAULT_RADIUS_HOURS
) -> list[str]:
    """
    Build the hourly instants either side of a reference instant.

    The window is inclusive at both ends, so it always holds
    ``2 * radius_hours + 1`` instants in ascending order, with the
    (hour-truncated) reference in the middle.

    Args:
        reference: Centre of the window
        radius_hours: Hours before and after the reference

    Returns:
        list[str]: Instants formatted as "YYYY-MM-DD HH:00"

    Raises:
        ValueError: If the reference is unparsable or the radius negative
    """
    if radius_hours < 0:
        raise ValueError(f"radius_hours must be >= 0, got {radius_hours}")

    centre = parse_monitor_time(reference)
    instants = pd.date_range(
        start=centre - pd.Timedelta(hours=radius_hours),
        periods=2 * radius_hours + 1,
        freq="h",
    )
    return [format_monitor_time(instant) for instant in instants]
