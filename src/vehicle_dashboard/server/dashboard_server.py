"""Dashboard server entrypoint (streamable HTTP transport).

This module wires together:
- HTTP JSON routes used by the dashboard front end
- Tools: MCP actions over the same data (history, tickets, stats)
- Resources: the fixed source layout

Run locally:
    python -m vehicle_dashboard
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from vehicle_dashboard.config import DashboardSettings, load_settings
from vehicle_dashboard.core.data_service import DashboardService
from vehicle_dashboard.core.errors import ConfigError, DashboardError, ValidationError
from vehicle_dashboard.core.models import LogSource
from vehicle_dashboard.resources.registry import register_resources
from vehicle_dashboard.tools.dashboard import (
    complaints_impl,
    feedback_impl,
    history_impl,
    sensor_data_impl,
    stats_impl,
    ticket_history_impl,
    tickets_impl,
    update_ticket_impl,
    vehicle_history_impl,
)
from vehicle_dashboard.transport import build_transport

LOGGER = logging.getLogger(__name__)

SENSOR_ROUTES: dict[str, LogSource] = {
    "/alcohol": LogSource.ALCOHOL,
    "/drowsiness": LogSource.DROWSINESS,
    "/obd": LogSource.OBD,
    "/visibility": LogSource.VISIBILITY,
}


def _configure_logging(level_name: str = "INFO") -> None:
    """Configure a reasonable default logging setup."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def error_response(action: str, exc: Exception) -> JSONResponse:
    """Convert an exception into the ``{"message", "error"}`` body."""
    if isinstance(exc, DashboardError):
        if exc.status_code >= 500:
            LOGGER.error("Failed to %s: %s", action, exc.detail or exc.message)
            body = {"message": f"Failed to {action}", "error": exc.detail or exc.message}
        else:
            body = exc.to_dict()
        return JSONResponse(body, status_code=exc.status_code)

    LOGGER.exception("Unexpected error while trying to %s", action)
    return JSONResponse({"message": f"Failed to {action}", "error": str(exc)}, status_code=500)


async def respond(action: str, call: Callable[[], Awaitable[Any]]) -> Response:
    try:
        return JSONResponse(await call())
    except Exception as exc:  # request boundary: every failure becomes a JSON body
        return error_response(action, exc)


async def _json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Invalid JSON body", detail=str(exc)) from exc


def _register_routes(mcp: FastMCP, service: DashboardService) -> None:
    def sensor_route(path: str, source: LogSource) -> None:
        @mcp.custom_route(path, methods=["GET"], name=f"{source.value}_data")
        async def handler(request: Request) -> Response:
            params = request.query_params
            return await respond(
                f"fetch {source.value} data",
                lambda: sensor_data_impl(
                    service,
                    source,
                    vehicle_number=params.get("vehicleNumber"),
                    start_time=params.get("startTime"),
                    end_time=params.get("endTime"),
                ),
            )

    for path, source in SENSOR_ROUTES.items():
        sensor_route(path, source)

    @mcp.custom_route("/complaints", methods=["GET"])
    async def complaints(request: Request) -> Response:
        return await respond("fetch complaints data", lambda: complaints_impl(service))

    @mcp.custom_route("/feedback", methods=["GET"])
    async def feedback(request: Request) -> Response:
        return await respond("fetch feedback data", lambda: feedback_impl(service))

    @mcp.custom_route("/history", methods=["GET"])
    async def history(request: Request) -> Response:
        return await respond("fetch history data", lambda: history_impl(service))

    @mcp.custom_route("/tickets", methods=["GET"])
    async def list_tickets(request: Request) -> Response:
        return await respond("fetch tickets data", lambda: tickets_impl(service))

    @mcp.custom_route("/tickets", methods=["PUT"])
    async def put_ticket(request: Request) -> Response:
        async def call() -> dict[str, Any]:
            ticket_id = request.query_params.get("id")
            if not ticket_id:
                raise ValidationError("Ticket ID is required")
            return await update_ticket_impl(service, ticket_id, await _json_body(request))

        return await respond("update ticket", call)

    @mcp.custom_route("/tickets/history", methods=["GET"])
    async def ticket_history(request: Request) -> Response:
        return await respond(
            "fetch ticket history", lambda: ticket_history_impl(service, request.query_params.get("id"))
        )

    @mcp.custom_route("/vehicle-history", methods=["GET"])
    async def vehicle_history(request: Request) -> Response:
        params = request.query_params
        return await respond(
            "fetch vehicle history",
            lambda: vehicle_history_impl(
                service,
                vehicle_number=params.get("vehicleNumber"),
                since=params.get("startTime"),
                until=params.get("endTime"),
            ),
        )

    @mcp.custom_route("/stats", methods=["GET"])
    async def stats(request: Request) -> Response:
        return await respond("fetch dashboard stats", lambda: stats_impl(service))

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})


def _register_tools(mcp: FastMCP, service: DashboardService) -> None:
    @mcp.tool()
    async def vehicle_history(
        vehicle_number: str | None = None,
        since: str | None = None,
        until: str | None = None,
        date: str | None = None,
        hour: str | None = None,
        week: str | None = None,
    ) -> dict[str, Any]:
        """Return a vehicle's correlated timeline from master history and the sensor logs.

        Parameters
        ----------
        vehicle_number:
            Registration number (e.g., MH12AB1234). Case-insensitive. Omit for all vehicles.
        since/until:
            ISO-8601 datetimes. If timezone is omitted, UTC is assumed.
        date/hour/week:
            Convenience selectors (2025-07-01, 2025-07-01T13, 2025-W27).

        Returns
        -------
        dict:
            {"vehicleNumber", "count", "records", "unavailableSources", ...}
        """
        return await vehicle_history_impl(
            service,
            vehicle_number=vehicle_number,
            since=since,
            until=until,
            date=date,
            hour=hour,
            week=week,
        )

    @mcp.tool()
    async def list_tickets() -> list[dict[str, Any]]:
        """Return every support ticket as stored."""
        return await tickets_impl(service)

    @mcp.tool()
    async def update_ticket(
        ticket_id: str,
        status: str | None = None,
        priority: str | None = None,
        admin_response: str | None = None,
    ) -> dict[str, Any]:
        """Update a ticket's status, priority and/or admin response.

        status is one of Pending, Processing, Resolved; priority one of Low,
        Medium, High, Critical. At least one field is required.
        """
        payload = {"status": status, "priority": priority, "adminResponse": admin_response}
        return await update_ticket_impl(service, ticket_id, {k: v for k, v in payload.items() if v is not None})

    @mcp.tool()
    async def dashboard_stats() -> dict[str, Any]:
        """Return ticket, complaint and feedback counts."""
        return await stats_impl(service)


def create_server(service: DashboardService, settings: DashboardSettings | None = None) -> FastMCP:
    """Build the server with HTTP routes, MCP tools and resources bound to one service."""
    settings = settings or DashboardSettings()
    mcp = FastMCP(
        "vehicle-dashboard",
        json_response=True,
        host=settings.http_host,
        port=settings.http_port,
    )
    _register_routes(mcp, service)
    _register_tools(mcp, service)
    register_resources(mcp, service)
    return mcp


def main() -> None:
    """Load settings and start the server over streamable HTTP."""
    try:
        settings = load_settings()
        _configure_logging(settings.log_level)
        service = DashboardService.from_settings(settings, build_transport(settings))
    except ConfigError as exc:
        print(f"Configuration error: {exc.message}", file=sys.stderr)
        if exc.detail:
            print(exc.detail, file=sys.stderr)
        raise SystemExit(2) from exc

    LOGGER.info(
        "Starting dashboard server on %s:%d (transport=%s)",
        settings.http_host,
        settings.http_port,
        settings.transport,
    )
    create_server(service, settings).run(transport="streamable-http")


if __name__ == "__main__":
    main()
