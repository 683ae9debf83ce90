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
HTTP surface for Airrelay.

Endpoints (all JSON):
- GET /taitung-air-data                  batched window around the reference time
- GET /taitung-air-data/items/<item>     one pollutant at one hour
- GET /taitung-air-data/areas/<area>     one station or county at one hour
- GET /healthz                           liveness probe, no upstream call

The lookup endpoints take an optional ``monitordate`` query parameter
("YYYY-MM-DD HH:00"); without it the reference time is used.

Every failure is rendered as a JSON body with a machine-readable
``status`` and a human-readable ``error``.

Example:
    >>> app = create_app(Settings.from_env())
    >>> app.run(port=3000)
"""

import logging

import requests
from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from . import downloader
from .config import Settings
from .exceptions import ConfigurationError, InvalidRequestError, UpstreamError

logger = logging.getLogger(__name__)

SETTINGS_KEY = "AIRRELAY_SETTINGS"

NO_RECORDS_MESSAGE = "查無符合條件的測項紀錄。"

bp = Blueprint("air_data", __name__)


def _settings() -> Settings:
    return current_app.config[SETTINGS_KEY]


def _monitor_date_arg() -> str | None:
    value = request.args.get("monitordate")
    return value if value else None


def _not_found(result) -> tuple:
    return (
        jsonify(
            {
                "status": "not_found",
                "monitordate": result.monitor_date,
                result.filter_field: result.filter_value,
                "error": f"在 {result.monitor_date} 查無 {result.filter_value} 的測項紀錄。",
            }
        ),
        404,
    )


# ============================================================================
# ROUTES
# ============================================================================


@bp.get("/taitung-air-data")
def window_data():
    result = downloader.download_window(_settings())

    body = {
        "status": "success",
        "time_range_start": result.time_range_start,
        "time_range_end": result.time_range_end,
        "summary": result.summary,
        "data": result.records,
    }
    if not result.records:
        body["message"] = NO_RECORDS_MESSAGE
    return jsonify(body)


@bp.get("/taitung-air-data/items/<item>")
def item_data(item: str):
    result = downloader.lookup_item(_settings(), item, _monitor_date_arg())

    if not result.found:
        return _not_found(result)

    return jsonify(
        {
            "status": "success",
            "monitordate": result.monitor_date,
            "item": item,
            "data": result.records[0],
        }
    )


@bp.get("/taitung-air-data/areas/<area>")
def area_data(area: str):
    result = downloader.lookup_area(_settings(), area, _monitor_date_arg())

    if not result.found:
        return _not_found(result)

    return jsonify(
        {
            "status": "success",
            "monitordate": result.monitor_date,
            "area": area,
            "summary": f"共 {len(result.records)} 筆測項紀錄。",
            "data": result.records,
        }
    )


@bp.get("/healthz")
def healthz():
    return jsonify({"status": "ok"})


# ============================================================================
# ERROR HANDLERS
# ============================================================================


def handle_invalid_request(error: InvalidRequestError):
    return (
        jsonify(
            {
                "status": "bad_request",
                "error": "monitordate 格式無效，應為 YYYY-MM-DD HH:00。",
                "detail": str(error),
            }
        ),
        400,
    )


def handle_configuration_error(error: ConfigurationError):
    logger.error(f"Configuration error: {error}")
    body = {"status": "config_error", "error": str(error)}
    if error.guidance:
        body["guidance"] = error.guidance
    return jsonify(body), 500


def handle_upstream_error(error: UpstreamError):
    logger.warning(f"Upstream error: {error} (HTTP {error.status_code})")
    return (
        jsonify(
            {
                "status": "upstream_error",
                "error": "上游 API 回應錯誤。",
                "detail": str(error),
                "upstream_status": error.status_code,
                "upstream_body": error.body,
            }
        ),
        502,
    )


def handle_network_error(error: requests.RequestException):
    logger.warning(f"Network error reaching upstream API: {error}")
    return (
        jsonify(
            {
                "status": "network_error",
                "error": "無法連線至上游 API。",
                "detail": type(error).__name__,
            }
        ),
        502,
    )


def handle_http_exception(error: HTTPException):
    return (
        jsonify({"status": "error", "error": error.description}),
        error.code or 500,
    )


def handle_unexpected_error(error: Exception):
    logger.error(f"Unhandled error serving {request.path}: {error}", exc_info=True)
    return jsonify({"status": "internal_error", "error": "伺服器內部錯誤。"}), 500


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(settings: Settings | None = None) -> Flask:
    """
    Create the Flask application.

    Args:
        settings: Service settings (default: read from the environment)

    Returns:
        Flask: Configured application
    """
    app = Flask(__name__)
    app.config[SETTINGS_KEY] = settings if settings is not None else Settings.from_env()

    # Serve Chinese text as-is and keep upstream field order
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    app.register_blueprint(bp)

    app.register_error_handler(ConfigurationError, handle_configuration_error)
    app.register_error_handler(InvalidRequestError, handle_invalid_request)
    app.register_error_handler(UpstreamError, handle_upstream_error)
    app.register_error_handler(requests.RequestException, handle_network_error)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_unexpected_error)

    return app
