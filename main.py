#!/usr/bin/env python3
"""
campusnav -- Campus navigation and administration backend.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY    Token signing key, at least 32 characters. Required unless DEBUG=true.
  DB_HOST       PostgreSQL host. When unset a local SQLite file is used.
  BASE_PATH     Optional URL prefix for every route, e.g. /campus.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="campusnav",
        description="Serve the campusnav REST API and static frontend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Interface to bind (default: {settings.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to listen on (default: {settings.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
