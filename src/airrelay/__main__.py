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
Run the Airrelay HTTP server.

Usage:
    python -m airrelay [--host HOST] [--port PORT] [--log-level LEVEL]

Settings come from the environment (or a .env file); command line options
override the listen address and log level only.
"""

import argparse
import logging
import sys

from .config import Settings
from .exceptions import ConfigurationError
from .server import create_app

logger = logging.getLogger("airrelay")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="airrelay",
        description="Relay Taiwan MOENV air quality data as JSON",
    )
    parser.add_argument("--host", default=None, help="Address to bind (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3000)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=args.log_level or settings.log_level,
    )
    # One line per upstream request is too chatty at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not settings.api_key:
        logger.critical("API_KEY is not set, data endpoints will return configuration errors")

    host = args.host or settings.host
    port = args.port or settings.port

    app = create_app(settings)
    logger.info(f"Server listening on port {port}")
    logger.info(f"Access endpoint: http://localhost:{port}/taitung-air-data")
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
