"""
=============================================================================
STARTUP COMMAND
=============================================================================

Once the listener is bound the server can kick off one auxiliary
command, typically "open the docs in a browser":

    ExecStart_Linux   = xdg-open http://127.0.0.1:8080/
    ExecStart_MacOS   = open http://127.0.0.1:8080/
    ExecStart_Windows = start http://127.0.0.1:8080/
    ExecStart         = echo started          ← used when no variant matches

The platform-specific value wins; the generic ExecStart is the fallback.

How a command is run also depends on the platform, so that part sits
behind a small ProcessLauncher interface:

    ┌──────────────────┐
    │  ProcessLauncher │  launch(command) -> bool
    └────────┬─────────┘
             │
     ┌───────┴────────┐
     ▼                ▼
  PosixLauncher   WindowsLauncher
  /bin/sh -c      cmd.exe /c, no console window

The command runs in the background. The server never waits for it and a
failure to start it is only a warning.

=============================================================================
"""

import logging
import platform
import subprocess  # nosec: B404
from abc import ABC, abstractmethod
from typing import Optional

from ..config import ServerConfig


logger = logging.getLogger(__name__)


# platform.system() → ServerConfig field
_PLATFORM_COMMANDS = {
    "Windows": "exec_start_windows",
    "Linux": "exec_start_linux",
    "Darwin": "exec_start_macos",
}


def select_startup_command(config: ServerConfig, system: Optional[str] = None) -> Optional[str]:
    """
    Pick the startup command for this platform.

    Args:
        config: Server configuration.
        system: Platform name as returned by platform.system().
                Defaults to the running platform.

    Returns:
        The command string, or None if nothing is configured.
    """
    system = system or platform.system()

    field_name = _PLATFORM_COMMANDS.get(system)
    if field_name:
        command = getattr(config, field_name)
        if command:
            return command

    return config.exec_start or None


class ProcessLauncher(ABC):
    """Starts a shell command in the background."""

    def launch(self, command: str) -> bool:
        """
        Start `command` without waiting for it.

        Returns:
            True if the process was started.
        """
        logger.info(f"Executing startup command: {command}")
        try:
            self._spawn(command)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to execute startup command: {e}")
            return False
        return True

    @abstractmethod
    def _spawn(self, command: str) -> subprocess.Popen:
        ...


class PosixLauncher(ProcessLauncher):
    """Runs the command through /bin/sh."""

    def _spawn(self, command: str) -> subprocess.Popen:
        return subprocess.Popen(command, shell=True)  # nosec: B602


class WindowsLauncher(ProcessLauncher):
    """Runs the command through cmd.exe without opening a console window."""

    def _spawn(self, command: str) -> subprocess.Popen:
        # Only defined on Windows builds of Python
        flags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
        return subprocess.Popen(["cmd.exe", "/c", command], creationflags=flags)


def get_launcher(system: Optional[str] = None) -> ProcessLauncher:
    """Return the launcher for the given (or running) platform."""
    system = system or platform.system()
    if system == "Windows":
        return WindowsLauncher()
    return PosixLauncher()
