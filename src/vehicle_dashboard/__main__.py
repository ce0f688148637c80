"""Module entrypoint.

Allows:
    python -m vehicle_dashboard
"""

from __future__ import annotations

from vehicle_dashboard.server.dashboard_server import main

if __name__ == "__main__":
    main()
