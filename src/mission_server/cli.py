"""
Launch the mission server:

    mission-server --port 8000

Settings come from ``MISSION_SIM_*`` environment variables; the flags below
only cover how the process listens.
"""
from __future__ import annotations

import argparse
import logging
import socket
import sys

from mission_sim.config import ConfigError, Settings
from mission_sim.rules.catalog import CatalogError, MissionCatalog

logger = logging.getLogger("mission_server")


def find_available_port(host: str, start_port: int, *, max_tries: int = 50) -> tuple[int, bool]:
    """
    Probe sequential ports starting from start_port.
    Returns (port, did_fallback).
    """
    if max_tries < 1:
        raise ValueError("max_tries must be >= 1")

    last_error: OSError | None = None
    for offset in range(max_tries):
        port = start_port + offset
        try:
            with socket.create_server((host, port), reuse_port=False):
                return port, offset != 0
        except OSError as exc:
            last_error = exc
            continue

    msg = f"No available port found starting at {start_port} after {max_tries} attempts"
    if last_error is not None:
        msg = f"{msg} (last error: {last_error})"
    raise RuntimeError(msg)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mission-server",
        description="Serve the mission deployment API.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to listen on (default: %(default)s).")
    parser.add_argument("--port", type=int, default=8000, help="Starting port (default: %(default)s).")
    parser.add_argument("--reload", action="store_true", help="Enable uvicorn --reload.")
    parser.add_argument(
        "--check", action="store_true", help="Validate settings and catalog, then exit."
    )
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        print(f"[mission-server] Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    try:
        catalog = MissionCatalog.load(settings.catalog_path)
    except CatalogError as exc:
        logger.error("Catalog failed to load: %s", exc)
        return 2
    if args.check:
        logger.info("Configuration OK: %d missions from %s", len(catalog), settings.catalog_path)
        return 0

    try:
        chosen_port, did_fallback = find_available_port(args.host, args.port, max_tries=50)
    except RuntimeError as exc:
        logger.error("Failed to select a free port: %s", exc)
        return 2

    if did_fallback:
        logger.info("Serving on %s:%d (selected because %d was in use).", args.host, chosen_port, args.port)
    else:
        logger.info("Serving on %s:%d.", args.host, chosen_port)

    import uvicorn

    try:
        uvicorn.run(
            "mission_server.main:app",
            host=args.host,
            port=chosen_port,
            reload=args.reload,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
