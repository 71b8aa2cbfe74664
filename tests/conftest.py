"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import replace
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from showdocs import ShowdocsServer, ServerConfig
from showdocs.core.launcher import ProcessLauncher


INDEX_BODY = b"Hello World!"
NOT_FOUND_BODY = b"Not Found"


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """Document root with index.html (12 bytes) and 404.html (9 bytes)."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_BODY)
    (root / "404.html").write_bytes(NOT_FOUND_BODY)
    return root


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class FakeConnection:
    """Collects sent bytes instead of writing to a socket."""

    def __init__(self, fail_after: Optional[int] = None):
        self.sent = []
        self.fail_after = fail_after

    def send(self, data: bytes) -> bool:
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            return False
        self.sent.append(data)
        return True

    @property
    def data(self) -> bytes:
        return b"".join(self.sent)


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


class RecordingLauncher(ProcessLauncher):
    """Launcher that records commands instead of running them."""

    def __init__(self):
        self.commands = []

    def _spawn(self, command: str):
        self.commands.append(command)


class ServerThread:
    """Runs a ShowdocsServer in a background thread."""

    def __init__(self, config: ServerConfig):
        self.launcher = RecordingLauncher()
        self.server = ShowdocsServer(config, launcher=self.launcher, handle_signals=False)
        self.exit_code: Optional[int] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        self.exit_code = self.server.run()

    def start(self) -> "ServerThread":
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")
        return self

    def stop(self, timeout: float = 5.0):
        self.server.shutdown()
        self.join(timeout)

    def join(self, timeout: float = 5.0):
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


@pytest.fixture
def start_server(docroot: Path, free_port: int) -> Generator:
    """
    Factory fixture: start_server(**config_overrides) -> ServerThread.

    Defaults to serving `docroot` on `free_port`.
    """
    started = []

    def _start(**overrides) -> ServerThread:
        config = replace(
            ServerConfig(listen_address="127.0.0.1", port=free_port, root_dir=str(docroot)),
            **overrides,
        )
        server = ServerThread(config).start()
        started.append(server)
        return server

    yield _start

    for server in started:
        server.stop()


def send_raw(port: int, payload: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        if payload:
            sock.sendall(payload)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(data: bytes):
    """Split a raw response into (status_line, headers, body)."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body
