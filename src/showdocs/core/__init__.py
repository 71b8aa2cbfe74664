"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The low-level plumbing:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Listener: binds IP:PORT, listens, select() + accept()            │
    │  • SocketServer: the accept loop and the shutdown flag               │
    │  • SIGINT/SIGTERM: first one stops gracefully, second one exits     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one connection at a time
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • One read, one response, always closed                            │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          LAUNCHER                                    │
    │  • Runs the configured startup command once the listener is bound   │
    └─────────────────────────────────────────────────────────────────────┘

There is no thread pool. Requests are served strictly one after another.

=============================================================================
"""

from .socket_server import SocketServer, Listener, StartupError
from .connection import Connection, ConnectionState
from .launcher import (
    ProcessLauncher,
    PosixLauncher,
    WindowsLauncher,
    get_launcher,
    select_startup_command,
)

__all__ = [
    "SocketServer",
    "Listener",
    "StartupError",
    "Connection",
    "ConnectionState",
    "ProcessLauncher",
    "PosixLauncher",
    "WindowsLauncher",
    "get_launcher",
    "select_startup_command",
]
