"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers. There is one: StaticFileHandler, which maps a parsed
request onto a file under the root directory and streams it back, with
404.html as the fallback page.

=============================================================================
"""

from .static import StaticFileHandler, NOT_FOUND_PAGE

__all__ = [
    "StaticFileHandler",
    "NOT_FOUND_PAGE",
]
