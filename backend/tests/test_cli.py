"""
Payload Pulverizer — CLI Tests
================================

What:  Argument parsing and the startup-failure exit code.
How:   build_settings() is tested directly; main() is run against a database
       path that cannot be opened, so uvicorn stops during startup before
       binding any socket.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from pulverizer import cli
from pulverizer.config import DEFAULT_DB_PATH


class TestBuildSettings:
    """Tests for --db-path handling."""

    def test_default_db_path(self, monkeypatch):
        monkeypatch.delenv("DB_PATH", raising=False)
        assert cli.build_settings([]).db_path == DEFAULT_DB_PATH

    def test_db_path_flag(self, tmp_path):
        path = str(tmp_path / "counts.db")
        assert cli.build_settings(["--db-path", path]).db_path == path

    def test_flag_overrides_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DB_PATH", "/from/env.db")
        path = str(tmp_path / "flag.db")
        assert cli.build_settings(["--db-path", path]).db_path == path

    def test_environment_used_without_flag(self, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/from/env.db")
        assert cli.build_settings([]).db_path == "/from/env.db"

    def test_default_port(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        assert cli.build_settings([]).port == 8080

    def test_unknown_flag_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.build_settings(["--verbose"])
        assert exc_info.value.code != 0


class TestMain:
    """Exit codes of main()."""

    def test_unopenable_store_exits_non_zero(self, tmp_path):
        bad_path = str(tmp_path / "does" / "not" / "exist.db")
        with patch("pulverizer.cli.setup_logging"):
            assert cli.main(["--db-path", bad_path]) == cli.EXIT_STARTUP_FAILED

    def test_uvicorn_exiting_during_startup_returns_failure(self, tmp_path, caplog):
        server = MagicMock()
        server.run.side_effect = SystemExit(3)
        with patch("pulverizer.cli.uvicorn.Server", return_value=server), \
             patch("pulverizer.cli.setup_logging"):
            with caplog.at_level(logging.ERROR, logger="pulverizer.cli"):
                code = cli.main(["--db-path", str(tmp_path / "ok.db")])

        assert code == cli.EXIT_STARTUP_FAILED
        assert "startup failed" in caplog.text
        assert "writable" not in caplog.text

    def test_server_that_never_started_returns_failure(self, tmp_path):
        server = MagicMock()
        server.started = False
        with patch("pulverizer.cli.uvicorn.Server", return_value=server), \
             patch("pulverizer.cli.setup_logging"):
            code = cli.main(["--db-path", str(tmp_path / "ok.db")])

        assert code == cli.EXIT_STARTUP_FAILED

    def test_clean_shutdown_exits_zero(self, tmp_path):
        server = MagicMock()
        server.started = True
        with patch("pulverizer.cli.uvicorn.Server", return_value=server) as server_cls, \
             patch("pulverizer.cli.setup_logging"):
            code = cli.main(["--db-path", str(tmp_path / "ok.db")])

        assert code == cli.EXIT_OK
        server.run.assert_called_once()
        config = server_cls.call_args.args[0]
        assert config.app.state.settings.db_path == str(tmp_path / "ok.db")
