"""Tests for the psmeter command line."""

import json

import pytest

from psmeter import __version__
from psmeter.cli import main


class FakeShell:
    output = "RSZ\n 3072\n"

    def __init__(self, timeout=None):
        self.timeout = timeout

    def __call__(self, command):
        return self.output


def test_version(capsys):
    main(["version"])
    assert capsys.readouterr().out.strip() == f"psmeter {__version__}"


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 1


def test_platform(monkeypatch, capsys):
    monkeypatch.setattr("sys.platform", "linux")
    main(["platform"])
    out = capsys.readouterr().out
    assert "platform: linux" in out
    assert "ps -o rsz" in out


def test_platform_unsupported(monkeypatch, capsys):
    monkeypatch.setattr("sys.platform", "win32")
    with pytest.raises(SystemExit):
        main(["platform"])
    assert "Unsupported platform" in capsys.readouterr().out


def test_sample_prints_json(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setattr("psmeter.agent.ShellCommandRunner", FakeShell)
    main(["--config", str(tmp_path / "missing.yaml"), "sample"])
    record = json.loads(capsys.readouterr().out.strip())
    assert record["name"] == "Memory/Physical"
    assert record["value"] == 3.0
    assert record["unit"] == "MiB"


def test_sample_broken_command_exits_nonzero(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setattr(FakeShell, "output", "RSZ\n")
    monkeypatch.setattr("psmeter.agent.ShellCommandRunner", FakeShell)
    with pytest.raises(SystemExit) as info:
        main(["--config", str(tmp_path / "missing.yaml"), "sample"])
    assert info.value.code == 1
