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

"""Relay Taiwan MOENV air quality data as JSON"""

from .config import Settings
from .downloader import download_window, lookup_area, lookup_item
from .exceptions import ConfigurationError, InvalidRequestError, UpstreamError
from .server import create_app
from .time_windows import hourly_window

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "download_window",
    "lookup_item",
    "lookup_area",
    "hourly_window",
    "create_app",
    "ConfigurationError",
    "InvalidRequestError",
    "UpstreamError",
]
