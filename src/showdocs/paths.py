"""
=============================================================================
PATH RESOLUTION
=============================================================================

Maps a request path onto the filesystem:

    root_dir = "/srv/docs"      path = "guide/intro.html"
                       │                    │
                       └──────── + ─────────┘
                                 │
                                 ▼
                   "/srv/docs/guide/intro.html"

The join is plain string concatenation. A separator is inserted only when
root_dir doesn't already end with one, and nothing is normalized:

    resolve_path("/srv/docs/", "a.html")   → "/srv/docs/a.html"
    resolve_path("", "a.html")             → "a.html"   (relative to cwd)
    resolve_path("/srv/docs", "../x")      → "/srv/docs/../x"

That last line is the path traversal gap. By default it is left open, so
a request for "../secret.html" really does read outside the root. Turn
on strict_paths in the config to have is_within_root() veto such paths.

=============================================================================
"""

import os


MAX_PATH_LENGTH = 512

_SEPARATORS = {os.sep, "/"}


def resolve_path(root_dir: str, relative_path: str, max_length: int = MAX_PATH_LENGTH) -> str:
    """
    Join root_dir and a request-derived relative path.

    Args:
        root_dir: Configured root directory ("" = current directory).
        relative_path: Path from the request line, leading "/" stripped.
        max_length: Size of the path buffer. The result is cut to
                    max_length - 1 characters.

    Returns:
        The full path. Not normalized, not checked for existence.
    """
    if not root_dir:
        full_path = relative_path
    elif root_dir[-1] in _SEPARATORS:
        full_path = f"{root_dir}{relative_path}"
    else:
        full_path = f"{root_dir}{os.sep}{relative_path}"

    return full_path[: max_length - 1]


def is_within_root(root_dir: str, full_path: str) -> bool:
    """
    Check that full_path, once ".." and symlinks are resolved, is still
    inside root_dir.
    """
    if "\x00" in full_path:
        return False

    root = os.path.realpath(root_dir or os.curdir)
    target = os.path.realpath(full_path)

    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        return False  # Different drives on Windows
