"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket and the accept loop. It is the
only place in the server with a lifecycle worth drawing.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket, set SO_REUSEADDR
    2. inet_pton() Check the listen address is a valid IPv4 address
    3. bind()      Associate the socket with IP:PORT
    4. listen(10)  OS starts queueing connections (10 = backlog)
    5. loop:       select() with a 1 second timeout, then accept()
    6. close()     Release the socket

Steps 1-4 are all-or-nothing. Any failure is logged and raised as
StartupError; the caller turns that into a non-zero exit code.

=============================================================================
WHY select() INSTEAD OF A PLAIN accept()?
=============================================================================

A blocking accept() can sit forever waiting for a client that never
comes, and then the process can't notice it has been asked to stop.
select() with a timeout gives the loop a heartbeat:

    while not stop_requested:
        ready = select([listener], timeout=1.0)
        if not ready:
            continue          ← re-check the flag once a second
        conn = accept()
        handle(conn)          ← synchronous, one client at a time
        conn.close()

So shutdown is noticed at most ~1 second after it is requested, or as
soon as the current request finishes, never in the middle of one.

=============================================================================
SHUTDOWN STATE MACHINE
=============================================================================

                 SIGINT / SIGTERM                 loop sees the flag
    RUNNING ───────────────────────► STOPPING ──────────────────────► STOPPED
                                         │
                                         │ second SIGINT / SIGTERM
                                         ▼
                                    os._exit(0)   (no cleanup at all)

The shutdown flag is a threading.Event. The signal handler (or
shutdown(), from another thread) is the only writer; the loop is the only
reader. It carries no payload beyond "stop", so no lock is needed.

The second-signal escape hatch is for a loop that is stuck, e.g. on a
client that connected and never sent anything.

=============================================================================
"""

import os
import socket
import select
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class StartupError(OSError):
    """The listener could not be created, bound or put into listen mode."""


class Listener:
    """
    The bound, listening socket.

    Python's socket and select modules already behave the same on
    Windows, Linux and macOS, so this one class covers every platform.

    Usage:
        listener = Listener("127.0.0.1", 8080)
        listener.open()
        if listener.wait(1.0):
            client_socket, address = listener.accept()
        listener.close()
    """

    def __init__(self, host: str, port: int, backlog: int = 10):
        self.host = host
        self.port = port
        self.backlog = backlog
        self._socket: Optional[socket.socket] = None

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (ip, port). Falls back to the configured one before open()."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.host, self.port)

    def open(self):
        """
        Create, bind and listen.

        Raises:
            StartupError: With a message saying which step failed.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error(f"Socket creation failed: {e}")
            raise StartupError(f"Socket creation failed: {e}") from e

        try:
            # Avoids "Address already in use" for the TIME_WAIT period
            # after a restart.
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError:
            logger.warning("Failed to set SO_REUSEADDR")

        try:
            socket.inet_pton(socket.AF_INET, self.host)
        except (OSError, ValueError):
            sock.close()
            logger.error(f"Invalid listen address: {self.host}")
            raise StartupError(f"Invalid listen address: {self.host}")

        try:
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            logger.error(f"Bind failed on {self.host}:{self.port}: {e}")
            raise StartupError(f"Bind failed on {self.host}:{self.port}: {e}") from e

        try:
            sock.listen(self.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Listen failed: {e}")
            raise StartupError(f"Listen failed: {e}") from e

        self._socket = sock

    def wait(self, timeout: float) -> bool:
        """
        Wait until a connection is ready to be accepted.

        Returns:
            True if accept() won't block, False on timeout.

        Raises:
            OSError: If select() itself fails (e.g. the socket was closed).
        """
        readable, _, _ = select.select([self._socket], [], [], timeout)
        return bool(readable)

    def accept(self) -> Tuple[socket.socket, Tuple[str, int]]:
        return self._socket.accept()

    def close(self):
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None


class SocketServer:
    """
    Accept loop with cooperative shutdown.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    open()            Bind the Listener (may raise StartupError)      │
    │                                                                      │
    │    serve(handler)    Main loop (blocks here!)                        │
    │        │                                                             │
    │        ├──► _setup_signals()   SIGINT/SIGTERM → request_stop        │
    │        │                                                             │
    │        └──► while not stopping:                                      │
    │                 wait(1s) → accept() → Connection                    │
    │                 handler(conn)    one at a time                      │
    │                 conn.close()     always                             │
    │                                                                      │
    │    shutdown()        Set the flag (any thread)                       │
    │                                                                      │
    │    _cleanup()        Restore signal handlers, close the listener     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.open()
        server.serve(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig, handle_signals: bool = True):
        """
        Args:
            config: Server configuration.
            handle_signals: Install SIGINT/SIGTERM handlers while serving.
                            Only possible from the main thread; ignored
                            elsewhere.
        """
        self.config = config
        self.handle_signals = handle_signals

        self._listener = Listener(config.listen_address, config.port, config.backlog)

        # The shutdown flag
        self._stop_requested = threading.Event()

        # Set once the listener is bound, for callers on other threads
        self._listening = threading.Event()

        self._signals_received = 0
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._listening.is_set() and not self._stop_requested.is_set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def address(self) -> Tuple[str, int]:
        """Get the server's bound address (IP, port)."""
        return self._listener.address

    def open(self):
        """Bind and listen. Raises StartupError on failure."""
        self._listener.open()
        self._listening.set()
        logger.info(
            f"Web server started successfully on "
            f"{self.address[0]}:{self.address[1]}"
        )

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until open() has succeeded. Returns False on timeout."""
        return self._listening.wait(timeout)

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Run the accept loop until shutdown is requested.

        Args:
            connection_handler: Called with each accepted connection. The
                                connection is closed after it returns,
                                whether it raised or not.
        """
        if self.handle_signals:
            self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while not self._stop_requested.is_set():
            try:
                if not self._listener.wait(self.config.poll_interval):
                    continue  # Timeout: go back and re-check the flag

                client_socket, client_address = self._listener.accept()

            except OSError as e:
                if self._stop_requested.is_set():
                    break  # Interrupted by shutdown
                logger.error(f"Accept failed: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                read_timeout=self.config.read_timeout,
            )

            with conn:
                try:
                    connection_handler(conn)
                except Exception as e:
                    # One bad request must not take the server down
                    logger.exception(f"[{conn.id}] Connection error: {e}")

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Safe to call from any thread and more than once. The loop exits
        after its current wait interval or the request in progress.
        """
        self._stop_requested.set()

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _handle_signal(self, signum, frame):
        """
        SIGINT/SIGTERM handler.

        First signal: set the flag and let the loop wind down.
        Second signal: exit immediately, skipping all cleanup.
        """
        self._signals_received += 1

        if self._signals_received > 1:
            os._exit(0)

        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, shutting down gracefully...")
        self.shutdown()

    def _setup_signals(self):
        """
        Install SIGINT/SIGTERM handlers, keeping the old ones to restore.

        signal.signal() only works in the main thread. A server embedded
        in a worker thread (as in the test suite) is stopped with
        shutdown() instead.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, signal handlers not installed")
            return

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._original_handlers[sig] = signal.signal(sig, self._handle_signal)
            except (OSError, ValueError):
                logger.warning(f"Failed to set {sig.name} handler")

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _cleanup(self):
        """Restore signal handlers and close the listener."""
        logger.info("Server shutting down...")
        self._restore_signals()
        self._listener.close()
        self._listening.clear()
