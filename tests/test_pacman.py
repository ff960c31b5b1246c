"""Tests for pacman queries and the privileged installer."""

import subprocess
from pathlib import Path

import pytest

from raur import pacman
from raur.config import Settings
from raur.errors import ConfigurationError, RaurError
from raur.pacman import LocalDatabase, PacmanInstaller


def fake_run(returncode=0, stdout="", stderr="", calls=None):
    def run(cmd, **kwargs):
        if calls is not None:
            calls.append(cmd)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)
    return run


def test_query_installed(monkeypatch):
    calls = []
    monkeypatch.setattr(pacman.subprocess, "run", fake_run(stdout="yay 12.3.5-1\n", calls=calls))

    assert LocalDatabase().query("yay") == "12.3.5-1"
    assert calls == [["pacman", "-Q", "--", "yay"]]


def test_query_not_installed(monkeypatch):
    monkeypatch.setattr(pacman.subprocess, "run", fake_run(returncode=1, stderr="error: package 'x' was not found"))

    assert LocalDatabase().query("x") is None


def test_foreign_packages(monkeypatch):
    monkeypatch.setattr(pacman.subprocess, "run", fake_run(stdout="yay 12.3.5-1\nparu 2.0.3-1\n"))

    assert LocalDatabase().foreign() == {"yay": "12.3.5-1", "paru": "2.0.3-1"}


def test_foreign_empty_and_error(monkeypatch):
    monkeypatch.setattr(pacman.subprocess, "run", fake_run(returncode=1))
    assert LocalDatabase().foreign() == {}

    monkeypatch.setattr(pacman.subprocess, "run", fake_run(returncode=1, stderr="database locked"))
    with pytest.raises(RaurError):
        LocalDatabase().foreign()


def test_missing_pacman_is_a_configuration_error(monkeypatch):
    def run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(pacman.subprocess, "run", run)

    with pytest.raises(ConfigurationError):
        LocalDatabase().query("yay")


def test_in_repositories(monkeypatch):
    calls = []
    monkeypatch.setattr(pacman.subprocess, "run", fake_run(stdout="cmake\n", calls=calls))

    assert LocalDatabase().in_repositories("cmake")
    assert calls == [["pacman", "-Sp", "--print-format", "%n", "--", "cmake"]]


def test_preflight(monkeypatch):
    monkeypatch.setattr(pacman.shutil, "which", lambda name: f"/usr/bin/{name}")

    monkeypatch.setattr(pacman.os, "geteuid", lambda: 0)
    with pytest.raises(ConfigurationError):
        PacmanInstaller(Settings()).preflight()

    monkeypatch.setattr(pacman.os, "geteuid", lambda: 1000)
    PacmanInstaller(Settings()).preflight()

    with pytest.raises(ConfigurationError):
        PacmanInstaller(Settings(allow_elevation=False)).preflight()

    monkeypatch.setattr(pacman.shutil, "which", lambda name: None)
    with pytest.raises(ConfigurationError):
        PacmanInstaller(Settings()).preflight()


def test_privileged_commands(monkeypatch):
    calls = []

    def record(cmd, cwd=None):
        calls.append(list(cmd))
        return 0

    monkeypatch.setattr(pacman, "run_to_completion", record)
    installer = PacmanInstaller(Settings(elevation_command="doas", noconfirm=True))

    installer.install([Path("/tmp/a.pkg.tar.zst")], as_dependency=True)
    installer.install([Path("/tmp/b.pkg.tar.zst")])
    installer.install_repository(["cmake"])
    installer.remove(["a", "b"])

    assert calls == [
        ["doas", "pacman", "-U", "--noconfirm", "--asdeps", "--", "/tmp/a.pkg.tar.zst"],
        ["doas", "pacman", "-U", "--noconfirm", "--", "/tmp/b.pkg.tar.zst"],
        ["doas", "pacman", "-S", "--needed", "--asdeps", "--noconfirm", "--", "cmake"],
        ["doas", "pacman", "-Rns", "--noconfirm", "--", "a", "b"],
    ]


def test_elevation_disabled_refuses_to_run(monkeypatch):
    monkeypatch.setattr(pacman, "run_to_completion", lambda cmd, cwd=None: pytest.fail("ran"))

    with pytest.raises(ConfigurationError):
        PacmanInstaller(Settings(allow_elevation=False)).remove(["a"])
