from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from vehicle_dashboard.config import load_settings
from vehicle_dashboard.core.data_service import DashboardService
from vehicle_dashboard.core.errors import ConfigError, DashboardError, ValidationError
from vehicle_dashboard.core.models import TicketPriority, TicketStatus
from vehicle_dashboard.tools.dashboard import update_ticket_impl, vehicle_history_impl
from vehicle_dashboard.transport import build_transport


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Vehicle dashboard: query and update the remote CSV logs.")
    sub = p.add_subparsers(dest="command", required=True)

    h = sub.add_parser("history", help="Correlated timeline for a vehicle")
    h.add_argument("vehicle_number")
    h.add_argument("--since", default=None, help="ISO8601 start time (assumes UTC if tz missing)")
    h.add_argument("--until", default=None, help="ISO8601 end time (assumes UTC if tz missing)")
    h.add_argument("--date", default=None, help="YYYY-MM-DD (UTC day)")
    h.add_argument("--hour", default=None, help="YYYY-MM-DDTHH (UTC hour)")
    h.add_argument("--week", default=None, help="YYYY-Www (ISO week, UTC)")

    sub.add_parser("tickets", help="List tickets")

    u = sub.add_parser("update-ticket", help="Update a ticket's status, priority or admin response")
    u.add_argument("ticket_id")
    u.add_argument("--status", choices=[s.value for s in TicketStatus], default=None)
    u.add_argument("--priority", choices=[p.value for p in TicketPriority], default=None)
    u.add_argument("--response", dest="admin_response", default=None, help="Admin response text")
    return p


async def _history(service: DashboardService, args: argparse.Namespace) -> None:
    out = await vehicle_history_impl(
        service,
        vehicle_number=args.vehicle_number,
        since=args.since,
        until=args.until,
        date=args.date,
        hour=args.hour,
        week=args.week,
    )
    for rec in out["records"]:
        print(f"{rec['displayTimestamp']} [{rec['source']}] {rec['type']}")
    for label, reason in out["unavailableSources"].items():
        print(f"unavailable: {label}: {reason}", file=sys.stderr)
    print(f"\nFound {out['count']} matching records.")


async def _tickets(service: DashboardService) -> None:
    tickets = await service.tickets()
    for t in tickets:
        print(f"{t.id} [{t.status}] {t.priority} {t.vehicle_number} {t.get('title', '')}")
    print(f"\n{len(tickets)} tickets.")


async def _update(service: DashboardService, args: argparse.Namespace) -> None:
    payload = {"status": args.status, "priority": args.priority, "adminResponse": args.admin_response}
    out = await update_ticket_impl(service, args.ticket_id, {k: v for k, v in payload.items() if v is not None})
    ticket = out["ticket"]
    print(f"{out['message']}: {ticket.get('id')} [{ticket.get('status')}] updatedAt={ticket.get('updatedAt')}")


async def _run(service: DashboardService, args: argparse.Namespace) -> None:
    if args.command == "history":
        await _history(service, args)
    elif args.command == "tickets":
        await _tickets(service)
    else:
        await _update(service, args)


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    try:
        settings = load_settings()
        service = DashboardService.from_settings(settings, build_transport(settings))
        asyncio.run(_run(service, args))
    except (ConfigError, ValidationError) as e:
        print(f"Error: {e.message}", file=sys.stderr)
        raise SystemExit(2)
    except DashboardError as e:
        print(f"Error: {e.message} ({e.detail or 'no detail'})", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
