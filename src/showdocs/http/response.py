"""
=============================================================================
HTTP RESPONSE WRITING
=============================================================================

Every response has exactly the same shape:

    ┌─────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\\r\\n                       ← status line        │
    │  Content-Type: text/html\\r\\n               ← ALWAYS text/html   │
    │  Date: Sun, 18 Oct 2026 09:30:00 GMT\\r\\n                        │
    │  Content-Length: 12\\r\\n                    ← file size on disk  │
    │  \\r\\n                                      ← end of headers     │
    │  Hello World!                               ← raw file bytes     │
    └─────────────────────────────────────────────────────────────────┘

The header is built fresh for each response and the body is streamed
straight from the file in buffer_size chunks, so memory use does not
grow with file size:

    open file ─► seek(END) ─► tell() = size ─► seek(0)
         │
         ├──► send(header)
         │
         └──► while chunk := read(buffer_size):
                  send(chunk)

Content-Type never changes with the file extension. A .css file is
still announced as text/html.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..paths import resolve_path


logger = logging.getLogger(__name__)


CONTENT_TYPE = "text/html"
CHUNK_SIZE = 4096


@dataclass(frozen=True)
class ResponseHeader:
    """
    The fixed header block sent before a file body.

    Attributes:
        status_line: e.g. "HTTP/1.1 404 Not Found" (no CRLF).
        date: HTTP-date string for the Date header.
        content_length: Size of the body in bytes.
        content_type: Always "text/html".
    """
    status_line: str
    date: str
    content_length: int
    content_type: str = CONTENT_TYPE

    def to_bytes(self) -> bytes:
        """Serialize to the on-the-wire header block."""
        return (
            f"{self.status_line}\r\n"
            f"Content-Type: {self.content_type}\r\n"
            f"Date: {self.date}\r\n"
            f"Content-Length: {self.content_length}\r\n"
            f"\r\n"
        ).encode("latin-1")


def send_file(
    connection,
    status_line: str,
    filename: str,
    date: str,
    root_dir: str,
    chunk_size: int = CHUNK_SIZE,
) -> bool:
    """
    Send a file under root_dir as a complete HTTP response.

    Args:
        connection: Anything with a send(bytes) -> bool method
                    (normally a core.Connection).
        status_line: Status line to send.
        filename: Path relative to root_dir.
        date: Value for the Date header.
        root_dir: Configured root directory.
        chunk_size: Bytes read from the file per send.

    Returns:
        True if the whole response went out. False if the file couldn't
        be opened (nothing was sent) or the client went away mid-stream.
    """
    full_path = resolve_path(root_dir, filename)

    try:
        fp = open(full_path, "rb")
    except (OSError, ValueError):
        return False

    with fp:
        fp.seek(0, os.SEEK_END)
        size = fp.tell()
        fp.seek(0)

        header = ResponseHeader(status_line=status_line, date=date, content_length=size)
        if not connection.send(header.to_bytes()):
            return False

        while True:
            chunk = fp.read(chunk_size)
            if not chunk:
                break
            if not connection.send(chunk):
                logger.warning(f"Client went away while sending {full_path}")
                return False

    return True


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 1123).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 09:30:00 GMT

    Day and month names are spelled out here instead of going through
    strftime("%a"/"%b"), which follow the process locale.
    """
    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def http_date_now(now: Optional[datetime] = None) -> str:
    """Current time as an HTTP-date."""
    return format_http_date(now or datetime.now(timezone.utc))
