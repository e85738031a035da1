"""Command-line interface entry points for imageconv."""

import argparse
import logging
import os


def run_web() -> None:
    """Entry point for the imageconv-web server command."""
    parser = argparse.ArgumentParser(
        description="Image conversion API - convert, compress, resize and process images over HTTP"
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to JSON config file (default: environment only)"
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="Port to run server on (default: $PORT or 3000)"
    )
    parser.add_argument(
        "-H", "--host",
        default=None,
        help="Host to bind to (default: $HOST or 0.0.0.0)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit"
    )

    args = parser.parse_args()

    if args.version:
        from . import __version__
        print(f"imageconv version {__version__}")
        return

    # Configure logging
    log_level = logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Import here to speed up --help
    from .web.server import run_server

    run_server(
        config_path=args.config,
        host=args.host,
        port=args.port,
    )


def main() -> None:
    """Main entry point that shows usage if called directly."""
    print("imageconv - Image Conversion API")
    print()
    print("Available commands:")
    print("  imageconv-web  - Run the HTTP API server")
    print()
    print("Use --help for more options.")


if __name__ == "__main__":
    main()
