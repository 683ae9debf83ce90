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
Service configuration.

Settings are read once at process start, from the environment and from a
``.env`` file in the working directory if there is one:

    API_KEY=your-moenv-key
    REFERENCE_TIME=2025-11-26 17:00

A missing API key is not an error at load time. The server still starts
and answers every data request with a configuration error.

Example:
    >>> from airrelay.config import Settings
    >>> settings = Settings.from_env()
    >>> settings.require_api_key()
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError

# Upstream defaults
MOENV_API_BASE = "https://data.epa.gov.tw/api/v2"
MOENV_RESOURCE_ID = "aqx_p_152"

# Taitung station, and the reference hour the window is built around
DEFAULT_SITE_NAME = "臺東"
DEFAULT_COUNTY_NAME = "臺東縣"
DEFAULT_REFERENCE_TIME = "2025-11-26 17:00"

API_KEY_GUIDANCE = "請在部署平台的環境變數或本地 .env 檔案中設定 API_KEY 的值。"


@dataclass(frozen=True)
class Settings:
    """
    Immutable service settings.

    Attributes:
        api_key: MOENV open data API key (empty if not configured)
        reference_time: Centre of the batched window, e.g. "2025-11-26 17:00"
        site_name: Station name sent as ``sitename``
        county: County name sent as ``county``
        base_url: Upstream API base URL
        resource_id: Upstream dataset identifier
        limit: Maximum records requested per call
        radius_hours: Hours either side of the reference time
        timeout: Transport timeout for each upstream call, in seconds
        host: Address the HTTP server binds to
        port: Port the HTTP server listens on
        log_level: Logging level name for the entry point
    """
    api_key: str = ""
    reference_time: str = DEFAULT_REFERENCE_TIME
    site_name: str = DEFAULT_SITE_NAME
    county: str = DEFAULT_COUNTY_NAME
    base_url: str = MOENV_API_BASE
    resource_id: str = MOENV_RESOURCE_ID
    limit: int = 1000
    radius_hours: int = 36
    timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, dotenv: bool = True):
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: ``os.environ``)
            dotenv: Load a ``.env`` file into ``os.environ`` first

        Returns:
            Settings: Immutable settings

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed, the
                window radius is negative or the log level is unknown
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ if environ is None else environ

        radius_hours = _parse_number(env, "WINDOW_RADIUS_HOURS", 36, int)
        if radius_hours < 0:
            raise ConfigurationError(
                f"環境變數 WINDOW_RADIUS_HOURS 的值無效：{radius_hours}",
                guidance="WINDOW_RADIUS_HOURS 必須是大於或等於 0 的整數。",
            )

        log_level = env.get("LOG_LEVEL", "").strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"環境變數 LOG_LEVEL 的值無效：{log_level!r}",
                guidance="LOG_LEVEL 應為 DEBUG、INFO、WARNING、ERROR 或 CRITICAL。",
            )

        return cls(
            api_key=env.get("API_KEY", "").strip(),
            reference_time=env.get("REFERENCE_TIME", DEFAULT_REFERENCE_TIME),
            site_name=env.get("SITE_NAME", DEFAULT_SITE_NAME),
            county=env.get("COUNTY_NAME", DEFAULT_COUNTY_NAME),
            base_url=env.get("MOENV_BASE_URL", MOENV_API_BASE).rstrip("/"),
            resource_id=env.get("MOENV_RESOURCE_ID", MOENV_RESOURCE_ID),
            limit=_parse_number(env, "MOENV_LIMIT", 1000, int),
            radius_hours=radius_hours,
            timeout=_parse_number(env, "REQUEST_TIMEOUT", 30.0, float),
            host=env.get("HOST", "0.0.0.0"),
            port=_parse_number(env, "PORT", 3000, int),
            log_level=log_level,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.resource_id}"

    def require_api_key(self) -> str:
        """
        Return the API key, or raise if it is not configured.

        Raises:
            ConfigurationError: If the API key is empty
        """
        if not self.api_key:
            raise ConfigurationError(
                "服務配置錯誤：API Key 未設定。", guidance=API_KEY_GUIDANCE
            )
        return self.api_key


def _parse_number(env: Mapping[str, str], name: str, default, kind):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"環境變數 {name} 的值無效：{raw!r}",
            guidance=f"{name} 必須是數字。",
        ) from e
