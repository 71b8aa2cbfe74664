"""
=============================================================================
HTTP PROTOCOL
=============================================================================

Just enough HTTP/1.1 to serve files:

    request.py       First-read parsing: method + path
    response.py      Fixed header block, file streaming, HTTP dates
    status_codes.py  200 and 404

=============================================================================
"""

from .status_codes import HTTPStatus
from .request import ParsedRequest, RequestParser, parse_request
from .response import ResponseHeader, send_file, format_http_date, http_date_now

__all__ = [
    "HTTPStatus",
    "ParsedRequest",
    "RequestParser",
    "parse_request",
    "ResponseHeader",
    "send_file",
    "format_http_date",
    "http_date_now",
]
