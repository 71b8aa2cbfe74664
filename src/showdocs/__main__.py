"""
=============================================================================
SHOWDOCS CLI ENTRY POINT
=============================================================================

    # Run with showdocs.ini (or defaults: 127.0.0.1:8080, current dir)
    showdocs
    python -m showdocs

    # Override the port from the config file
    showdocs --port 9090

    # Serve another directory, with an explicit config file
    showdocs --root ./site --config /etc/showdocs.ini

    # Version, build and platform information
    showdocs --version

=============================================================================
EXIT CODES
=============================================================================

    0   Normal shutdown (Ctrl+C / SIGTERM) or --version
    1   Fatal startup failure (bad address, bind/listen failed, bad config)
    2   Invalid command line (e.g. --port 0)

=============================================================================
"""

import argparse
import logging
import platform
import sys
from dataclasses import replace
from typing import Optional

from . import __version__, __build_date__, __git_commit__
from .config import ServerConfig, default_config_path, load_config_file
from .server import ShowdocsServer, setup_logging


logger = logging.getLogger(__name__)


_PLATFORM_NAMES = {
    "Windows": "Windows",
    "Darwin": "macOS",
    "Linux": "Linux",
}


def version_text() -> str:
    """Version, build and platform lines printed at startup and by --version."""
    system = _PLATFORM_NAMES.get(platform.system(), "Unix")
    build_date = __build_date__.replace("_", " ")
    return (
        f"v{__version__}\n"
        f"Built: {build_date}\n"
        f"Commit: {__git_commit__}\n"
        f"Platform: {system}\n"
    )


def positive_int(value: str) -> int:
    """argparse type for --port."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="showdocs",
        description="Serve a directory of HTML documentation over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  showdocs                          # Use showdocs.ini or defaults
  showdocs --port 9090              # Custom port
  showdocs --root ./site            # Serve ./site
  showdocs --config other.ini       # Explicit config file
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--port", "-p",
        type=positive_int,
        default=None,
        help="Port to listen on (overrides the config file)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONFIGURATION ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="INI file to read (default: <program name>.ini)"
    )

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Directory to serve files from (overrides RootDir)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=version_text()
    )

    return parser


def build_config(args: argparse.Namespace, argv0: str) -> ServerConfig:
    """
    Resolve the final configuration: file, then environment, then CLI.
    """
    path = args.config or default_config_path(argv0)
    config = load_config_file(path).with_env()

    overrides = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.root is not None:
        overrides["root_dir"] = args.root
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    return replace(config, **overrides) if overrides else config


def main(argv: Optional[list] = None):
    """
    Main CLI entry point. Exits the process with the server's exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    print(version_text())

    setup_logging(args.log_level or "INFO")

    config = build_config(args, sys.argv[0])
    setup_logging(config.log_level)
    logger.info(f"Using port: {config.port}")

    server = ShowdocsServer(config)
    sys.exit(server.run())


if __name__ == "__main__":
    main()
