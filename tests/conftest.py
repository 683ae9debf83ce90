"""
Pytest configuration and shared fixtures.

This module provides common fixtures and utilities used across all tests.
"""

import pytest

from airrelay.config import Settings

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings with an API key and the default Taitung station."""
    return Settings(api_key="test-key", reference_time="2025-11-26 17:00")


@pytest.fixture
def settings_without_key():
    """Settings as they are when API_KEY was never set."""
    return Settings(api_key="", reference_time="2025-11-26 17:00")


@pytest.fixture
def moenv_url(settings):
    """Dataset URL the client calls."""
    return settings.endpoint


# ============================================================================
# Record Fixtures
# ============================================================================


def make_record(monitordate, item="PM2.5", sitename="臺東", concentration="12"):
    """Build one record shaped like the aqx_p_152 dataset."""
    names = {
        "PM2.5": ("33", "細懸浮微粒", "μg/m3"),
        "PM10": ("4", "懸浮微粒", "μg/m3"),
        "O3": ("3", "臭氧", "ppb"),
        "NO2": ("7", "二氧化氮", "ppb"),
    }
    itemid, itemname, unit = names.get(item, ("99", item, ""))
    return {
        "siteid": "62",
        "sitename": sitename,
        "county": "臺東縣",
        "itemid": itemid,
        "itemname": itemname,
        "itemengname": item,
        "itemunit": unit,
        "monitordate": monitordate,
        "concentration": concentration,
    }


@pytest.fixture
def record_factory():
    """Return the make_record helper."""
    return make_record


@pytest.fixture
def hourly_records():
    """Records for one hour at Taitung, one per pollutant."""
    return [
        make_record("2025-11-26 17:00", "PM2.5", concentration="12"),
        make_record("2025-11-26 17:00", "PM10", concentration="25"),
        make_record("2025-11-26 17:00", "O3", concentration="31"),
        make_record("2025-11-26 17:00", "NO2", concentration="4.2"),
    ]


@pytest.fixture
def county_records():
    """Records for one hour across two stations in Taitung County."""
    return [
        make_record("2025-11-26 17:00", "PM2.5", sitename="臺東", concentration="12"),
        make_record("2025-11-26 17:00", "PM10", sitename="臺東", concentration="25"),
        make_record("2025-11-26 17:00", "PM2.5", sitename="關山", concentration="8"),
        make_record("2025-11-26 17:00", "PM10", sitename="關山", concentration="17"),
    ]
