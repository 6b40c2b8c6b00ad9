"""Mafia room engine - Entry point."""

import os
import sys
import traceback

from mafia.main import start_server

if __name__ == "__main__":
    host = os.getenv("MAFIA_HOST") or os.getenv("HOST")
    port = os.getenv("MAFIA_PORT") or os.getenv("PORT")
    print(f"=== main.py starting room engine on {host or 'default host'}:{port or 'default port'} ===", file=sys.stderr)
    try:
        start_server(host=host, port=int(port) if port else None)
    except Exception as e:
        print(f"=== main.py server crashed with error: {e} ===", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)
