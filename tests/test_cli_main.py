"""Tests for the CLI entry point (hotconf = hotconf.cli:main)."""

import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from hotconf import __version__
from hotconf.cli import main
from hotconf.fingerprint import fingerprint
from tests.conftest import write_config

REPO_ROOT = Path(__file__).resolve().parent.parent


def test_main_version_exits_zero_and_prints_version(capsys):
    """Main entry with 'version' subcommand exits 0 and prints version."""
    with patch.object(sys, "argv", ["hotconf", "version"]):
        exit_code = main()
    assert exit_code == 0
    out, _ = capsys.readouterr()
    assert out.strip() == __version__


def test_main_help_lists_subcommands(capsys):
    with patch.object(sys, "argv", ["hotconf", "--help"]):
        with pytest.raises(SystemExit) as exc_info:
            main()
    assert exc_info.value.code == 0
    out, err = capsys.readouterr()
    combined = out + err
    for name in ("check", "watch", "version"):
        assert name in combined


def test_check_prints_document_and_fingerprint(capsys, config_file):
    with patch.object(sys, "argv", ["hotconf", "check", str(config_file)]):
        exit_code = main()
    assert exit_code == 0
    out, _ = capsys.readouterr()
    assert "foo: foo!" in out
    assert f"# fingerprint: {fingerprint(config_file.read_bytes())}" in out


def test_check_json_output(capsys, config_file):
    with patch.object(sys, "argv", ["hotconf", "check", str(config_file), "--json"]):
        assert main() == 0
    out, _ = capsys.readouterr()
    data = json.loads(out)
    assert data["config"] == {"foo": "foo!"}
    assert data["fingerprint"] == fingerprint(config_file.read_bytes())


def test_check_json_file(capsys, tmp_path):
    path = write_config(tmp_path / "config.json", '{"foo": "from json"}\n')
    with patch.object(sys, "argv", ["hotconf", "check", str(path), "--json"]):
        assert main() == 0
    out, _ = capsys.readouterr()
    assert json.loads(out)["config"] == {"foo": "from json"}


def test_check_missing_file_exits_one(capsys, tmp_path):
    with patch.object(sys, "argv", ["hotconf", "check", str(tmp_path / "missing.yaml")]):
        assert main() == 1
    _, err = capsys.readouterr()
    assert "Invalid config" in err
    assert "missing.yaml" in err


def test_check_malformed_file_exits_one(capsys, tmp_path):
    path = write_config(tmp_path / "config.yaml", "foo: [unclosed list\n")
    with patch.object(sys, "argv", ["hotconf", "check", str(path)]):
        assert main() == 1
    _, err = capsys.readouterr()
    assert "could not parse yaml" in err


def test_watch_prints_initial_version(capsys, config_file):
    argv = ["hotconf", "watch", str(config_file), "--no-notify", "--poll-interval", "0.1", "--max-updates", "1", "--json"]
    with patch.object(sys, "argv", argv):
        assert main() == 0
    out, _ = capsys.readouterr()
    assert json.loads(out.strip())["config"] == {"foo": "foo!"}


def test_module_main_version_via_subprocess():
    """Running python -m hotconf.cli version exits 0 and prints version (tests __main__ path)."""
    result = subprocess.run(
        [sys.executable, "-m", "hotconf.cli", "version"],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        timeout=10,
    )
    assert result.returncode == 0
    assert __version__ in (result.stdout + result.stderr)
