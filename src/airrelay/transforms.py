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
Composable record transformation functions.

This module provides small, pure functions that transform lists of
upstream records in predictable ways. Functions can be composed together
using `pipe()` or `compose()` to build processing pipelines.

Records are passed through untouched: transforms only select and reorder
them, so whatever the upstream API sent is what clients receive.

Example:
    >>> prepare = compose(
    ...     filter_records(("itemengname",), "PM2.5"),
    ...     sort_records("monitordate"),
    ... )
    >>> prepared = prepare(records)
"""

from datetime import datetime
from functools import reduce
from itertools import chain
from typing import Iterable

import pandas as pd

from .types import Record, RecordTransformer

SOURCE_TIMEZONE = "Asia/Taipei"


def pipe(records: list[Record], *functions: RecordTransformer) -> list[Record]:
    """
    Apply a series of transformation functions to records in sequence.

    Args:
        records: Input records
        *functions: Variable number of transformer functions to apply

    Returns:
        list[Record]: Records after all functions applied
    """
    return reduce(lambda data, func: func(data), functions, records)


def compose(*functions: RecordTransformer) -> RecordTransformer:
    """
    Compose multiple transformer functions into a single function.

    Args:
        *functions: Variable number of transformer functions to compose

    Returns:
        RecordTransformer: A new function that applies all transformations
    """

    def composed(records: list[Record]) -> list[Record]:
        return pipe(records, *functions)

    return composed


def concat_records(batches: Iterable[list[Record] | None]) -> list[Record]:
    """
    Flatten batches of records into one list.

    Empty and None batches contribute nothing. Order within and between
    batches is preserved.
    """
    return list(chain.from_iterable(batch for batch in batches if batch))


def _to_instant(value) -> pd.Timestamp:
    if not isinstance(value, (str, datetime)):
        return pd.NaT
    timestamp = pd.to_datetime(value, format="ISO8601", errors="coerce")
    if pd.isna(timestamp):
        return pd.NaT
    # Upstream times without an offset are Taiwan local time
    if timestamp.tzinfo is None:
        timestamp = timestamp.tz_localize(SOURCE_TIMEZONE)
    return timestamp.tz_convert("UTC")


def parse_timestamps(values: Iterable) -> pd.Series:
    """
    Parse record timestamps into a UTC datetime Series.

    Uses ISO 8601 parsing, which accepts the API's "YYYY-MM-DD HH:MM" and
    "YYYY-MM-DD HH:MM:SS" forms regardless of locale. Values without an
    offset are read as Taiwan local time, values with one (in any mix of
    offsets) are converted, so every value is comparable. Missing or
    unparsable values become NaT.
    """
    instants = pd.Series([_to_instant(value) for value in values], dtype=object)
    return pd.to_datetime(instants, utc=True)


def sort_records(field: str, ascending: bool = True) -> RecordTransformer:
    """
    Return a function that sorts records by a timestamp field.

    The sort is stable, so records sharing a timestamp keep their relative
    order. Records whose timestamp is missing or unparsable go last.

    Args:
        field: Name of the timestamp field (e.g. "monitordate")
        ascending: Sort ascending (True) or descending (False)

    Returns:
        RecordTransformer: Function that sorts records

    Example:
        >>> transform = sort_records("monitordate")
        >>> ordered = transform(records)
    """

    def transform(records: list[Record]) -> list[Record]:
        if not records:
            return []
        keys = parse_timestamps(record.get(field) for record in records)
        order = keys.sort_values(
            ascending=ascending, kind="mergesort", na_position="last"
        ).index
        return [records[i] for i in order]

    return transform


def filter_records(
    fields: tuple[str, ...] | str, value: str, case_sensitive: bool = False
) -> RecordTransformer:
    """
    Return a function that keeps records where any of `fields` equals `value`.

    Args:
        fields: Field name, or tuple of field names checked in turn
        value: Value to match (surrounding whitespace ignored)
        case_sensitive: Compare case-sensitively (default: False)

    Returns:
        RecordTransformer: Function that filters records

    Example:
        >>> # Keep PM2.5 whether it is named in English or Chinese
        >>> transform = filter_records(("itemengname", "itemname"), "PM2.5")
    """
    if isinstance(fields, str):
        fields = (fields,)

    def normalise(text) -> str:
        text = str(text).strip()
        return text if case_sensitive else text.casefold()

    wanted = normalise(value)

    def transform(records: list[Record]) -> list[Record]:
        return [
            record
            for record in records
            if any(
                record.get(f) is not None and normalise(record[f]) == wanted
                for f in fields
            )
        ]

    return transform


def first_records(n: int) -> RecordTransformer:
    """Return a function that keeps at most the first `n` records."""

    def transform(records: list[Record]) -> list[Record]:
        return records[:n]

    return transform
