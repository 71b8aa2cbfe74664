"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with two statuses:

    200 OK          The requested file exists and is sent back
    404 Not Found   It doesn't, and 404.html is sent instead

There is no 500: when neither file can be opened the connection is
simply closed without a response.

=============================================================================
"""

from enum import IntEnum


HTTP_VERSION = "HTTP/1.1"


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.status_line
        'HTTP/1.1 404 Not Found'
    """

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES[self]

    @property
    def status_line(self) -> str:
        """Full response status line, without the trailing CRLF."""
        return f"{HTTP_VERSION} {self.value} {self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}
