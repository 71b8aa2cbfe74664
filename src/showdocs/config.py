"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration management for the documentation server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── showdocs --port 9090                                       │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── SHOWDOCS_PORT=9090 showdocs                                │
    │                                                                      │
    │   3. INI file next to the program                                   │
    │      └── showdocs.ini                                               │
    │                                                                      │
    │   4. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE INI FILE
=============================================================================

    ; showdocs.ini
    Port = 8080
    ListenAddress = 0.0.0.0
    RootDir = /srv/docs
    ExecStart_Linux = xdg-open http://127.0.0.1:8080/

Keys are case-insensitive and indentation is ignored. Section headers
are allowed but carry no meaning: every key is read no matter which
section it sits in, and a later line wins over an earlier one.

The config is loaded ONCE before the server starts and is frozen after
that. Overrides never mutate it, they build a new instance with
dataclasses.replace().

=============================================================================
"""

import os
import logging
import configparser
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_NAME = "showdocs"

# INI key (lowercased) → ServerConfig field
_KEY_ALIASES = {
    "port": "port",
    "listenaddr": "listen_address",
    "listenaddress": "listen_address",
    "rootdir": "root_dir",
    "execstart": "exec_start",
    "execstart_win": "exec_start_windows",
    "execstart_windows": "exec_start_windows",
    "execstart_linux": "exec_start_linux",
    "execstart_macos": "exec_start_macos",
    "execstart_darwin": "exec_start_macos",
    "readtimeout": "read_timeout",
    "strictpaths": "strict_paths",
    "loglevel": "log_level",
}

_FIELD_NAMES = set(_KEY_ALIASES.values())

_TRUE_VALUES = {"1", "yes", "true", "on"}
_FALSE_VALUES = {"0", "no", "false", "off"}


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the documentation server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - port, listen_address, backlog, buffer_size, poll_interval, read_timeout

    CONTENT
    - root_dir, strict_paths

    STARTUP COMMAND
    - exec_start, exec_start_windows, exec_start_linux, exec_start_macos

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    port: int = 8080
    """The TCP port to listen on."""

    listen_address: str = "127.0.0.1"
    """
    IPv4 address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    backlog: int = 10
    """
    Maximum number of queued connections.
    Once the queue is full the OS refuses new connections.
    """

    buffer_size: int = 4096
    """
    Size of the single request read, and of each file chunk sent back.
    """

    poll_interval: float = 1.0
    """
    How long the accept loop waits on the listener before re-checking
    the shutdown flag, in seconds.
    """

    read_timeout: Optional[float] = None
    """
    Per-connection read/write timeout in seconds.
    None = blocking. A client that connects and never sends anything
    then holds the (single) accept loop until it goes away.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = ""
    """
    Directory files are served from. Empty = current directory.
    """

    strict_paths: bool = False
    """
    Reject request paths that resolve outside root_dir (they are then
    handled as missing files). Off by default: "../" segments are
    passed through to the filesystem as-is.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STARTUP COMMAND
    # ─────────────────────────────────────────────────────────────────────

    exec_start: str = ""
    exec_start_windows: str = ""
    exec_start_linux: str = ""
    exec_start_macos: str = ""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: str) -> "ServerConfig":
        """Create configuration from an INI file (defaults if absent)."""
        return load_config_file(path, cls())

    def with_env(self) -> "ServerConfig":
        """
        Overlay environment variables on top of this configuration.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        SHOWDOCS_PORT            Server port
        SHOWDOCS_LISTEN_ADDRESS  Address to bind to
        SHOWDOCS_ROOT_DIR        Directory to serve
        SHOWDOCS_LOG_LEVEL       Logging level

        =====================================================================
        """
        overrides = {}

        port = os.getenv("SHOWDOCS_PORT")
        if port:
            try:
                overrides["port"] = int(port)
            except ValueError:
                logger.warning(f"Ignoring invalid SHOWDOCS_PORT: {port!r}")

        address = os.getenv("SHOWDOCS_LISTEN_ADDRESS")
        if address:
            overrides["listen_address"] = address

        root_dir = os.getenv("SHOWDOCS_ROOT_DIR")
        if root_dir is not None:
            overrides["root_dir"] = root_dir

        log_level = os.getenv("SHOWDOCS_LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level

        return replace(self, **overrides) if overrides else self

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value stops the server before
        it binds anything.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")


def config_filename(argv0: str) -> str:
    """
    Derive the INI file name from the program name.

        /opt/bin/showdocs           → /opt/bin/showdocs.ini
        C:\\tools\\showdocs_Windows.exe → C:\\tools\\showdocs.ini
        .../showdocs/__main__.py    → showdocs.ini   (python -m showdocs)

    Platform suffixes after the first underscore are dropped so that every
    per-platform build reads the same file.
    """
    path = Path(argv0)
    name = path.name

    for extension in (".exe", ".py"):
        if name.lower().endswith(extension):
            name = name[: -len(extension)]
            break

    name = name.split("_", 1)[0]

    if not name:
        return f"{DEFAULT_CONFIG_NAME}.ini"

    return str(path.with_name(f"{name}.ini"))


def default_config_path(argv0: str) -> str:
    """
    Where to look for the INI file when --config isn't given.

    The file next to the program wins. An installed console script lives
    in the environment's bin/ directory, so when nothing is there the
    same name is tried in the current directory.
    """
    beside_program = config_filename(argv0)
    if os.path.isfile(beside_program):
        return beside_program

    in_cwd = os.path.basename(beside_program)
    if os.path.isfile(in_cwd):
        return in_cwd

    return beside_program


def load_config_file(path: str, base: Optional[ServerConfig] = None) -> ServerConfig:
    """
    Read an INI file on top of `base` (defaults when omitted).

    A missing file is not an error: the base config is returned as-is and
    a warning is logged. Unknown keys are ignored. A value that can't be
    converted (Port = eighty) is logged and skipped.
    """
    config = base or ServerConfig()

    try:
        # Non-UTF-8 bytes (a cp1252 RootDir) are kept as surrogates
        with open(path, "r", encoding="utf-8", errors="surrogateescape") as fp:
            text = fp.read()
    except OSError:
        logger.warning(f"No config file found ({path}), using defaults")
        return config

    try:
        values = parse_config_text(text)
    except configparser.Error as e:
        logger.warning(f"Could not parse config file {path}: {e}")
        return config

    logger.info(f"Loaded configuration from: {path}")

    return _apply_values(config, values)


def parse_config_text(text: str) -> dict:
    """
    Parse INI text into {field_name: raw_value}.

    Each line is stripped of its indentation first, so an indented key
    is a key and never a continuation of the previous value. Section
    headers and lines without a key are dropped, and what is left is
    read under one synthetic section. Keys are mapped to field names as
    they are read, so ListenAddr and ListenAddress share one slot and
    whichever comes last in the file wins.
    """
    parser = configparser.ConfigParser(
        strict=False,
        interpolation=None,
        delimiters=("=",),
        comment_prefixes=("#", ";"),
        default_section="__defaults__",
    )
    parser.optionxform = _field_for_key

    lines = list(_stripped_lines(text))
    parser.read_string("\n".join([f"[{DEFAULT_CONFIG_NAME}]"] + lines))

    return {
        key: value.strip()
        for key, value in parser.items(DEFAULT_CONFIG_NAME, raw=True)
        if key in _FIELD_NAMES
    }


def _stripped_lines(text: str):
    for line in text.splitlines():
        line = line.lstrip()
        if not line or line.startswith("["):
            continue
        if "=" not in line or line.startswith("="):
            continue  # No key
        yield line


def _field_for_key(key: str) -> str:
    lowered = key.strip().lower()
    return _KEY_ALIASES.get(lowered, lowered)


def _apply_values(config: ServerConfig, values: dict) -> ServerConfig:
    """Convert raw INI strings to typed fields and build a new config."""
    overrides = {}

    for field_name, raw in values.items():
        try:
            overrides[field_name] = _convert(field_name, raw)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {field_name}: {raw!r}")

    return replace(config, **overrides)


def _convert(field_name: str, raw: str):
    if field_name == "port":
        return int(raw)
    if field_name == "read_timeout":
        return float(raw) if raw else None
    if field_name == "strict_paths":
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(raw)
    return raw
