"""
=============================================================================
SHOWDOCS - Minimal Static Documentation Server
=============================================================================

Serves the files of one directory over HTTP, one request at a time:

    $ cat showdocs.ini
    Port = 8080
    RootDir = ./docs

    $ showdocs
    $ curl http://127.0.0.1:8080/          → docs/index.html
    $ curl http://127.0.0.1:8080/nope.html → docs/404.html (status 404)

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    showdocs/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m showdocs)
    ├── server.py            # ShowdocsServer: wires everything together
    ├── config.py            # ServerConfig, INI + environment loading
    ├── paths.py             # root_dir + request path → filesystem path
    ├── core/
    │   ├── socket_server.py # Listener, accept loop, signal handling
    │   ├── connection.py    # Connection wrapper
    │   └── launcher.py      # Platform startup command
    ├── http/
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Header block + file streaming
    │   └── status_codes.py  # 200 / 404
    └── handlers/
        └── static.py        # 200 / 404.html / nothing

=============================================================================
QUICK START
=============================================================================

    from showdocs import ShowdocsServer, ServerConfig

    server = ShowdocsServer(ServerConfig(port=8080, root_dir="./docs"))
    raise SystemExit(server.run())

=============================================================================
"""

__version__ = "1.0.0"
__build_date__ = "unknown"
__git_commit__ = "unknown"

from .config import ServerConfig
from .server import ShowdocsServer, run

__all__ = ["ShowdocsServer", "ServerConfig", "run", "__version__"]
