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
Core type definitions for Airrelay.

Upstream records are kept as plain dictionaries and passed through to
clients untouched. Only a handful of their fields are ever read, listed
in the constants at the bottom of this module.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, TypeAlias, TypedDict

Record: TypeAlias = dict[str, Any]
"""One upstream measurement item (a site, a pollutant, an hour)."""


class MoenvRecord(TypedDict, total=False):
    """
    Fields returned by the MOENV ``aqx_p_152`` hourly dataset.

    Airrelay relies on ``monitordate`` for ordering and on the item and
    site names for filtering. Everything else is opaque.
    """
    siteid: str
    sitename: str
    county: str
    itemid: str
    itemname: str
    itemengname: str
    itemunit: str
    monitordate: str
    concentration: str


RecordTransformer: TypeAlias = Callable[[list[Record]], list[Record]]
"""
A function that transforms a list of records (filtering, sorting, ...).

Args:
    records: Input records

Returns:
    list[Record]: Transformed records
"""

WindowFetcher: TypeAlias = Callable[..., list[Record]]
"""
A function that fetches the records for one monitoring instant.

Called as ``fetch(settings, monitor_date)``. Must not raise for upstream
failures: an empty list stands for "nothing usable at this hour".
"""


@dataclass(frozen=True)
class WindowResult:
    """
    Merged outcome of a batched window download.

    Attributes:
        time_range_start: First requested monitoring instant
        time_range_end: Last requested monitoring instant
        requested_hours: Number of instants requested
        successful_requests: Instants that yielded at least one record
        records: All records, sorted by their own ``monitordate``
    """
    time_range_start: str
    time_range_end: str
    requested_hours: int
    successful_requests: int
    records: list[Record] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"成功取得 {self.successful_requests} 個小時，"
            f"共 {len(self.records)} 筆測項紀錄。"
        )


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of a single-fetch lookup.

    ``records`` is empty when the fetch succeeded but nothing matched.
    """
    monitor_date: str
    filter_field: str
    filter_value: str
    records: list[Record] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.records)


# Field names used by the MOENV datasets
TIMESTAMP_FIELD = "monitordate"
ITEM_FIELDS = ("itemengname", "itemname")
AREA_FIELDS = ("sitename", "county")
