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
Exceptions raised by Airrelay.

Network failures are not wrapped: they surface as the ``requests``
exceptions that caused them (``requests.RequestException`` and subclasses).
"""


class ConfigurationError(ValueError):
    """
    The service is not configured well enough to handle a request.

    Raised for a missing API key, an unparsable reference time or a
    malformed numeric setting. Always raised before any upstream call.
    """

    def __init__(self, message: str, guidance: str | None = None):
        super().__init__(message)
        self.guidance = guidance


class UpstreamError(Exception):
    """
    The upstream API answered, but not with something usable.

    Covers non-success HTTP statuses and bodies that are not the expected
    JSON object.

    Attributes:
        status_code: HTTP status returned by the upstream API
        body: Response body as text (possibly truncated)
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InvalidRequestError(ValueError):
    """A caller-supplied parameter (such as ``monitordate``) is invalid."""
