"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Decides what to send back for one parsed request.

=============================================================================
DISPATCH POLICY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   resolve(root, path)                                               │
    │        │                                                             │
    │        ▼                                                             │
    │   can open it? ──yes──► 200 OK, the file                            │
    │        │                                                             │
    │        no                                                            │
    │        ▼                                                             │
    │   can open root/404.html? ──yes──► 404 Not Found, 404.html          │
    │        │                                                             │
    │        no                                                            │
    │        ▼                                                             │
    │   log an error, send NOTHING (the client just sees the              │
    │   connection close)                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"Can open it?" is tested literally, by opening the file and closing it
again. Directories, unreadable files, and paths with NUL bytes in them
all count as missing.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

resolves to "<root>/../../etc/passwd" and, by default, IS served if the
process can read it. The server is meant for local documentation on a
loopback address. When that isn't the setup, enable strict_paths: the
resolved path is then checked against the real root directory
(following ".." and symlinks) and anything outside it is treated as
missing, which sends the 404 page.

=============================================================================
"""

import logging
from typing import Optional

from ..config import ServerConfig
from ..core.connection import Connection
from ..http.request import ParsedRequest
from ..http.response import send_file, http_date_now
from ..http.status_codes import HTTPStatus
from ..paths import resolve_path, is_within_root


logger = logging.getLogger(__name__)


NOT_FOUND_PAGE = "404.html"


class StaticFileHandler:
    """
    Serves files from a root directory, with a 404.html fallback.

    Usage:
        handler = StaticFileHandler(root_dir="/srv/docs")
        status = handler.handle(conn, parse_request(conn.read()))
    """

    def __init__(
        self,
        root_dir: str = "",
        not_found_page: str = NOT_FOUND_PAGE,
        strict_paths: bool = False,
        chunk_size: int = 4096,
    ):
        """
        Args:
            root_dir: Directory to serve ("" = current directory).
                      Not resolved or checked here; a missing root just
                      means every request ends without a response.
            not_found_page: Fallback page, relative to root_dir.
            strict_paths: Treat paths escaping root_dir as missing.
            chunk_size: Bytes per send while streaming a file.
        """
        self.root_dir = root_dir
        self.not_found_page = not_found_page
        self.strict_paths = strict_paths
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls, config: ServerConfig) -> "StaticFileHandler":
        return cls(
            root_dir=config.root_dir,
            strict_paths=config.strict_paths,
            chunk_size=config.buffer_size,
        )

    def handle(self, connection: Connection, request: ParsedRequest) -> Optional[HTTPStatus]:
        """
        Send the response for one request.

        Returns:
            The status that was sent, or None if no complete response
            went out.
        """
        path = request.path
        logger.info(f"Request: {path}")

        date = http_date_now()

        if self.exists(path):
            if not self._send(connection, HTTPStatus.OK, path, date):
                logger.warning(f"Response not sent: {path}")
                return None
            logger.info(f"200 OK: {path}")
            return HTTPStatus.OK

        if self.exists(self.not_found_page):
            if not self._send(connection, HTTPStatus.NOT_FOUND, self.not_found_page, date):
                logger.warning(f"404 response not sent: {path}")
                return None
            logger.warning(f"404 Not Found: {path}")
            return HTTPStatus.NOT_FOUND

        logger.error(f"404 page not found and no {self.not_found_page} available")
        return None

    def exists(self, relative_path: str) -> bool:
        """
        Check a request path by trying to open the file it resolves to.
        """
        full_path = resolve_path(self.root_dir, relative_path)

        if self.strict_paths and not is_within_root(self.root_dir, full_path):
            logger.warning(f"Path outside root directory: {relative_path}")
            return False

        try:
            with open(full_path, "rb"):
                return True
        except (OSError, ValueError):
            # ValueError: embedded NUL byte in the path
            return False

    def _send(self, connection: Connection, status: HTTPStatus, filename: str, date: str) -> bool:
        return send_file(
            connection,
            status.status_line,
            filename,
            date,
            self.root_dir,
            chunk_size=self.chunk_size,
        )

