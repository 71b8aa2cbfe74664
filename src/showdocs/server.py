"""
=============================================================================
SHOWDOCS SERVER
=============================================================================

Wires the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   ServerConfig ──► ShowdocsServer.run()                             │
    │                         │                                            │
    │                         ├──► SocketServer.open()      bind + listen │
    │                         ├──► startup command          (optional)    │
    │                         └──► SocketServer.serve()     blocks        │
    │                                   │                                  │
    │                                   └──► for each connection:         │
    │                                          read once                  │
    │                                          RequestParser              │
    │                                          StaticFileHandler          │
    │                                          (close)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

run() returns a process exit code instead of raising:

    0   normal shutdown (signal or shutdown())
    1   the server could not start (bad config, bad address, bind/listen)

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core.connection import Connection
from .core.launcher import ProcessLauncher, get_launcher, select_startup_command
from .core.socket_server import SocketServer, StartupError
from .handlers.static import StaticFileHandler
from .http.request import RequestParser


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_FAILURE = 1


class ShowdocsServer:
    """
    Static documentation server.

    Usage:
        server = ShowdocsServer(ServerConfig(root_dir="./docs"))
        exit_code = server.run()   # Blocks until SIGINT/SIGTERM

    From another thread (tests, embedding):
        threading.Thread(target=server.run).start()
        server.wait_until_listening(5.0)
        ...
        server.shutdown()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        launcher: Optional[ProcessLauncher] = None,
        handle_signals: bool = True,
    ):
        self.config = config or ServerConfig()
        self._launcher = launcher or get_launcher()

        self._socket_server = SocketServer(self.config, handle_signals=handle_signals)
        self._parser = RequestParser()
        self._handler = StaticFileHandler.from_config(self.config)

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def shutdown(self):
        """Stop after the current poll interval or request."""
        self._socket_server.shutdown()

    def run(self) -> int:
        """
        Start the server (blocking).

        Returns:
            Process exit code.
        """
        try:
            self.config.validate()
            self._socket_server.open()
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            return EXIT_FAILURE
        except StartupError:
            # Already logged with the failing step
            return EXIT_FAILURE

        if self.config.root_dir:
            logger.info(f"Root directory: {self.config.root_dir}")

        command = select_startup_command(self.config)
        if command:
            self._launcher.launch(command)

        self._socket_server.serve(self._handle_connection)
        return EXIT_OK

    def _handle_connection(self, conn: Connection):
        """
        Process one connection: read, parse, respond.

        Closing is the SocketServer's job, not ours.
        """
        raw_request = conn.read()
        if not raw_request:
            logger.debug(f"[{conn.id}] Empty read from {conn.client_ip}, dropping connection")
            return

        request = self._parser.parse(raw_request)
        self._handler.handle(conn, request)


def setup_logging(log_level: str = "INFO"):
    """
    Configure logging for the command-line program.

        2026-10-18 09:30:00.123 [INFO] showdocs.handlers.static: 200 OK: index.html
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # basicConfig() is a no-op once configured, so set levels explicitly
    logging.getLogger().setLevel(level)
    logging.getLogger("showdocs").setLevel(level)


def run(config: Optional[ServerConfig] = None) -> int:
    """Run a server with the given config and return its exit code."""
    return ShowdocsServer(config).run()
