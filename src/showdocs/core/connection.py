"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for exactly one request/response
exchange. There is no keep-alive: every connection is closed after a
single response (or after no response at all).

=============================================================================
ONE READ, NOT A READ LOOP
=============================================================================

TCP is a byte stream, so a request line *could* arrive split across
several recv() calls. This server deliberately reads once:

    recv(buffer_size)  →  whatever arrived first is the request

Browsers and curl send the request line in the first segment, so in
practice this is enough. A client trickling bytes one at a time will just
get its first fragment parsed.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► WRITING ──────┐
                   │                          │
                   │  (empty read / timeout)  │
                   ▼                          ▼
                CLOSING ◄─────────────────────┘
                   │
                   ▼
                 CLOSED

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


# Upper bounds on discarding unread client input at close
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, mostly for logging."""
    NEW = "new"              # Just accepted
    READING = "reading"      # Waiting for the request bytes
    WRITING = "writing"      # Sending header/body
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Owned by the accept-loop iteration that created it and closed at the
    end of that iteration no matter what happened:

        with Connection(sock, addr) as conn:
            data = conn.read()
            ...
        # closed here

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 4096
    read_timeout: Optional[float] = None

    def __post_init__(self):
        # None = fully blocking, which is the default
        self.socket.settimeout(self.read_timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def read(self) -> bytes:
        """
        Read the request, once.

        Returns:
            Up to buffer_size bytes. Empty bytes if the client closed the
            connection, reset it, or (with read_timeout set) sent nothing
            in time. The caller treats all of these the same way:
            abandon the connection and move on.
        """
        self.state = ConnectionState.READING

        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out")
            return b""
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    def send(self, data: bytes) -> bool:
        """
        Send bytes to the client.

        Uses sendall() so a partial send can't silently truncate the
        response.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # Includes ConnectionResetError, BrokenPipeError, socket.timeout
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. drain what the client still has in flight (the part of a long
           request we never read), bounded by DRAIN_TIMEOUT and
           DRAIN_LIMIT. Unread input makes the kernel answer with RST,
           which can cost the client the tail of our response
        3. close(): release the descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        """
        Discard unread input, for at most DRAIN_TIMEOUT seconds and
        DRAIN_LIMIT bytes. A client that keeps sending is cut off.
        """
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # socket.timeout is an OSError too

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
