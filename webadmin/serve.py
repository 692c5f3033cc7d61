"""
Serve the API with uvicorn. Run from project root:

  python -m webadmin.serve [--port 8080] [--verbose]

Port comes from --port, else PORT, else 8080. --verbose (or VERBOSE=true)
turns on DEBUG logging and uvicorn access logs.
"""

import argparse
import sys

import uvicorn

from webadmin.core.config import Settings, get_settings
from webadmin.main import create_app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the webadmin API server.")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: PORT or 8080)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug and access logging")
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    """Apply command-line overrides on top of env settings."""
    update: dict[str, object] = {}
    if args.port is not None:
        update["PORT"] = args.port
    if args.verbose:
        update["VERBOSE"] = True
    return settings.model_copy(update=update) if update else settings


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = resolve_settings(args, get_settings())
    if not (1 <= settings.PORT <= 65535):
        print("Port must be between 1 and 65535.", file=sys.stderr)
        return 1
    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host,
        port=settings.PORT,
        access_log=settings.VERBOSE,
        log_level="debug" if settings.VERBOSE else "info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
