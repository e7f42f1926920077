"""
Tests for the mycelium.cli module.
"""

from unittest.mock import patch

import pytest
import requests
from click.testing import CliRunner

from mycelium.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestCodecCommands:

    def test_encode(self, runner):
        result = runner.invoke(main, ["encode", "https://example.test/a.py"])

        assert result.exit_code == 0
        assert result.output.strip() == "/.mycelium/https:/example.test/a.py"

    def test_decode_remote(self, runner):
        result = runner.invoke(main, ["decode", "/.mycelium/https:/example.test/a.py"])

        assert result.exit_code == 0
        assert result.output.strip() == "https://example.test/a.py"

    def test_decode_local(self, runner):
        result = runner.invoke(main, ["decode", "/usr/lib/mod.js"])

        assert result.output.strip() == "LOCAL"

    def test_decode_unsupported_scheme(self, runner):
        result = runner.invoke(main, ["decode", "/.mycelium/ftp:/example.test/a.py"])

        assert result.exit_code == 1
        assert "UNSUPPORTED_SCHEME" in result.output

    def test_encode_respects_env_prefix(self, runner, monkeypatch):
        monkeypatch.setenv("MYCELIUM_RESERVED_PREFIX", "/.net")

        result = runner.invoke(main, ["encode", "http://h/x.js"])

        assert result.output.strip() == "/.net/http:/h/x.js"


class TestCat:

    def test_cat_remote(self, runner, http_session_factory):
        session = http_session_factory(b"line one\n", b"line two\n")

        with patch.object(requests, "Session", return_value=session):
            result = runner.invoke(main, ["cat", "https://example.test/a.txt"])

        assert result.exit_code == 0
        assert result.output == "line one\nline two\n"

    def test_cat_local(self, runner, tmp_path):
        target = tmp_path / "mod.js"
        target.write_bytes(b"export {};\n")

        result = runner.invoke(main, ["cat", str(target)])

        assert result.exit_code == 0
        assert result.output == "export {};\n"

    @pytest.mark.filterwarnings("error::DeprecationWarning")
    def test_cat_writes_without_deprecated_stream_helpers(self, runner, tmp_path):
        target = tmp_path / "blob.bin"
        target.write_bytes(b"\x00\xffbinary\n")

        result = runner.invoke(main, ["cat", str(target)])

        assert result.exit_code == 0
        assert result.stdout_bytes == b"\x00\xffbinary\n"

    def test_cat_connection_error(self, runner, http_session_factory):
        session = http_session_factory(b"", status_code=404)

        with patch.object(requests, "Session", return_value=session):
            result = runner.invoke(main, ["cat", "https://example.test/missing.js"])

        assert result.exit_code == 1
        assert "HTTP 404" in result.output


class TestRun:

    def test_run_script(self, runner, tmp_path):
        script = tmp_path / "main.py"
        script.write_text("print('ran', 1 + 1)\n")

        result = runner.invoke(main, ["run", str(script)])

        assert result.exit_code == 0
        assert "ran 2" in result.output

    def test_run_rejects_bad_module_option(self, runner, tmp_path):
        script = tmp_path / "main.py"
        script.write_text("pass\n")

        result = runner.invoke(main, ["run", str(script), "-m", "nouri"])

        assert result.exit_code == 1
        assert "NAME=URI" in result.output

    def test_run_unknown_language(self, runner, tmp_path):
        script = tmp_path / "notes.txt"
        script.write_text("hello\n")

        result = runner.invoke(main, ["run", str(script)])

        assert result.exit_code == 1
        assert "UNKNOWN_LANGUAGE" in result.output
