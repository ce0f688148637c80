"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from vehicle_dashboard.core.data_service import DashboardService
from vehicle_dashboard.core.models import LogSource
from vehicle_dashboard.tools.dashboard import TicketUpdate


def describe_sources(service: DashboardService) -> dict[str, dict[str, Any]]:
    """Remote path, fetch strategy and dialect for each log family."""
    out: dict[str, dict[str, Any]] = {}
    for source in LogSource:
        binding = service.bindings[source]
        out[source.value] = {
            "label": source.label,
            "path": service.paths.for_source(source),
            "fetch": "tail" if binding.tail else "whole",
            "lines": service.tail_lines if binding.tail else None,
            "header": binding.include_header if binding.tail else None,
            "parser": type(binding.parser).__name__,
        }
    return out


def register_resources(mcp: FastMCP, service: DashboardService) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://vehicle-dashboard/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://vehicle-dashboard/help\n"
            "- app://vehicle-dashboard/sources\n"
            "- app://vehicle-dashboard/schemas/ticket-update\n"
        )

    @mcp.resource("app://vehicle-dashboard/sources")
    def sources() -> dict[str, dict[str, Any]]:
        """Return the remote log layout."""
        return describe_sources(service)

    @mcp.resource("app://vehicle-dashboard/schemas/ticket-update")
    def ticket_update_schema() -> dict[str, Any]:
        """Return the JSON schema for ticket update bodies."""
        return TicketUpdate.model_json_schema()
