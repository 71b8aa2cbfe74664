"""
Unit tests for the command-line entry point.
"""

import pytest

from showdocs import __version__
from showdocs.__main__ import build_config, build_parser, main, version_text


ENV_NAMES = (
    "SHOWDOCS_PORT",
    "SHOWDOCS_LISTEN_ADDRESS",
    "SHOWDOCS_ROOT_DIR",
    "SHOWDOCS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def quiet_logging(monkeypatch):
    """Keep main() from reconfiguring the root logger."""
    monkeypatch.setattr("showdocs.__main__.setup_logging", lambda level="INFO": None)


class TestParser:
    """Tests for argument parsing."""

    def test_version_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert out.startswith(f"v{__version__}\n")
        assert "Platform: " in out

    def test_short_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["-v"])

        assert exc_info.value.code == 0

    @pytest.mark.parametrize("value", ["0", "-5", "abc"])
    def test_invalid_port(self, value, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--port", value])

        assert exc_info.value.code == 2
        assert "invalid port number" in capsys.readouterr().err

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.port is None
        assert args.config is None
        assert args.root is None
        assert args.log_level is None


class TestVersionText:
    def test_lines(self):
        lines = version_text().splitlines()

        assert lines[0] == f"v{__version__}"
        assert lines[1].startswith("Built: ")
        assert lines[2].startswith("Commit: ")
        assert lines[3] in (
            "Platform: Windows",
            "Platform: macOS",
            "Platform: Linux",
            "Platform: Unix",
        )


class TestBuildConfig:
    """Tests for combining the config file, environment and flags."""

    def test_cli_port_beats_file(self, tmp_path):
        ini = tmp_path / "showdocs.ini"
        ini.write_text("Port = 8081\nRootDir = docs\n")
        args = build_parser().parse_args(["--config", str(ini), "--port", "9090"])

        config = build_config(args, "showdocs")

        assert config.port == 9090
        assert config.root_dir == "docs"

    def test_file_port_used_without_flag(self, tmp_path):
        ini = tmp_path / "showdocs.ini"
        ini.write_text("Port = 8081\n")
        args = build_parser().parse_args(["--config", str(ini)])

        assert build_config(args, "showdocs").port == 8081

    def test_env_beats_file(self, tmp_path, monkeypatch):
        ini = tmp_path / "showdocs.ini"
        ini.write_text("Port = 8081\n")
        monkeypatch.setenv("SHOWDOCS_PORT", "7070")
        args = build_parser().parse_args(["--config", str(ini)])

        assert build_config(args, "showdocs").port == 7070

    def test_cli_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHOWDOCS_ROOT_DIR", "/from/env")
        args = build_parser().parse_args(
            ["--config", str(tmp_path / "absent.ini"), "--root", "/from/cli"]
        )

        assert build_config(args, "showdocs").root_dir == "/from/cli"

    def test_config_name_from_program(self, tmp_path):
        (tmp_path / "mydocs.ini").write_text("Port = 8123\n")
        args = build_parser().parse_args([])

        config = build_config(args, str(tmp_path / "mydocs_Linux"))

        assert config.port == 8123

    def test_config_found_in_current_directory(self, tmp_path, monkeypatch):
        """Installed scripts live in bin/, so the working directory is tried next."""
        (tmp_path / "showdocs.ini").write_text("Port = 8124\n")
        monkeypatch.chdir(tmp_path)
        args = build_parser().parse_args([])

        config = build_config(args, str(tmp_path / "venv" / "bin" / "showdocs"))

        assert config.port == 8124

    def test_log_level_flag(self, tmp_path):
        args = build_parser().parse_args(
            ["--config", str(tmp_path / "absent.ini"), "--log-level", "DEBUG"]
        )

        assert build_config(args, "showdocs").log_level == "DEBUG"


class TestMain:
    """Tests for main() exit codes."""

    def test_startup_failure_exits_one(self, tmp_path, quiet_logging, capsys):
        ini = tmp_path / "showdocs.ini"
        ini.write_text("ListenAddress = 999.1.1.1\n")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(ini)])

        assert exc_info.value.code == 1
        assert capsys.readouterr().out.startswith(f"v{__version__}")

    def test_bad_flag_exits_two(self, quiet_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--port", "0"])

        assert exc_info.value.code == 2
