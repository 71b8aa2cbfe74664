"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

The server only looks at the first two words of what the client sends:

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /guide/intro.html HTTP/1.1\\r\\n                            │
    │  └─┘ └───────────────┘ └──────────────────────────────────────┘ │
    │  method     path            ignored (version, headers, body)    │
    └─────────────────────────────────────────────────────────────────┘

Everything comes from ONE recv() of at most buffer_size bytes. There is
no loop collecting a longer request: if the request line doesn't fit in
the first read, whatever arrived is what gets parsed.

=============================================================================
PATH NORMALIZATION
=============================================================================

    Request line          Path handed to the resolver
    ──────────────        ───────────────────────────
    GET /                 index.html
    GET                   index.html        (no path token at all)
    GET /a/b.html         a/b.html          (one leading "/" removed)
    GET //a.html          /a.html           (only ONE "/" removed)
    GET /x.html?v=2       x.html?v=2        (query strings are not special)

Nothing is rejected. A malformed request line just yields an odd path,
which then fails to open and falls through to the 404 page.

=============================================================================
"""

from dataclasses import dataclass


INDEX_FILE = "index.html"


@dataclass(frozen=True)
class ParsedRequest:
    """
    The two tokens we care about from a request line.

    Attributes:
        method: HTTP method as sent ("GET", "HEAD", ...). Not used to
                route anything; kept for logging.
        path: Relative file path (leading "/" already stripped).
    """
    method: str
    path: str


class RequestParser:
    """
    Turns the first read from a connection into a ParsedRequest.

    Stateless, one instance is shared by all connections.
    """

    def __init__(self, index_file: str = INDEX_FILE):
        self.index_file = index_file

    def parse(self, data: bytes) -> ParsedRequest:
        """
        Parse raw request bytes.

        Args:
            data: Bytes from a single recv() call. Must not be empty:
                  an empty read means the client went away and the
                  caller abandons the connection before parsing.

        Returns:
            ParsedRequest with the normalized path.
        """
        # Split on ASCII whitespace only, before decoding
        tokens = data.split(None, 2)
        method = _decode(tokens[0]) if tokens else ""
        path = _decode(tokens[1]) if len(tokens) > 1 else ""

        return ParsedRequest(method=method, path=self.normalize_path(path))

    def normalize_path(self, path: str) -> str:
        """Apply the default-document and leading-slash rules."""
        if not path or path == "/":
            return self.index_file

        if path.startswith("/"):
            return path[1:]

        return path


def parse_request(data: bytes) -> ParsedRequest:
    """
    Convenience function to parse a request with default settings.
    """
    return RequestParser().parse(data)


def _decode(token: bytes) -> str:
    # Non-UTF-8 bytes are kept as surrogates, which open() maps back
    # to the original bytes
    return token.decode("utf-8", errors="surrogateescape")
