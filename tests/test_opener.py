"""Tests for odinsource.opener."""

import subprocess

from odinsource import opener


class TestOpenPath:
    def test_configured_command(self, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(subprocess, "Popen", lambda args, **kw: calls.append(args))
        opener.open_path(tmp_path / "x.pdf", ["evince", "--fullscreen"])
        assert calls == [["evince", "--fullscreen", str(tmp_path / "x.pdf")]]

    def test_platform_default(self, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(subprocess, "Popen", lambda args, **kw: calls.append(args))
        monkeypatch.setattr(opener.sys, "platform", "linux")
        opener.open_path(tmp_path / "x.pdf")
        assert calls == [["xdg-open", str(tmp_path / "x.pdf")]]

    def test_macos_default(self, monkeypatch):
        monkeypatch.setattr(opener.sys, "platform", "darwin")
        assert opener.default_command() == ["open"]
