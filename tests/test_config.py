"""Tests for config module."""

import pytest

from src.dirwatch.config import TrackerConfig
from src.dirwatch.differ import mtime_changed

from conftest import make_entry


class FakeDirEntry:
    """Stand-in for os.DirEntry."""

    def __init__(self, name: str):
        self.name = name


class TestTrackerConfig:
    """Tests for TrackerConfig class."""

    def test_default_values(self):
        config = TrackerConfig()
        assert config.entry_filter is None
        assert config.is_modified is mtime_changed
        assert config.ignore_patterns == []
        assert config.include_hidden is True
        assert config.follow_symlinks is True
        assert config.observer_timeout == 1.0
        assert config.join_timeout == 5.0

    def test_custom_values(self):
        config = TrackerConfig(
            ignore_patterns=["*.tmp"],
            include_hidden=False,
            observer_timeout=0.1,
        )
        assert config.ignore_patterns == ["*.tmp"]
        assert config.include_hidden is False
        assert config.observer_timeout == 0.1

    def test_default_tracks_everything(self):
        config = TrackerConfig()
        assert config.should_track(FakeDirEntry("file.txt")) is True
        assert config.should_track(FakeDirEntry(".hidden")) is True
        assert config.should_track(FakeDirEntry("file.tmp")) is True

    def test_ignore_patterns(self):
        config = TrackerConfig(ignore_patterns=["*.tmp", "*~"])
        assert config.should_ignore("file.tmp") is True
        assert config.should_ignore("file.txt~") is True
        assert config.should_ignore("file.txt") is False

    def test_exclude_hidden(self):
        config = TrackerConfig(include_hidden=False)
        assert config.should_ignore(".DS_Store") is True
        assert config.should_ignore("visible") is False

    def test_entry_filter(self):
        config = TrackerConfig(entry_filter=lambda entry: entry.name.endswith(".md"))
        assert config.should_track(FakeDirEntry("README.md")) is True
        assert config.should_track(FakeDirEntry("main.py")) is False

    def test_ignore_applies_before_filter(self):
        seen = []

        def entry_filter(entry):
            seen.append(entry.name)
            return True

        config = TrackerConfig(entry_filter=entry_filter, ignore_patterns=["*.tmp"])

        assert config.should_track(FakeDirEntry("a.tmp")) is False
        assert seen == []

    def test_default_is_modified(self):
        config = TrackerConfig()
        old = make_entry("a", mtime_ns=1)
        assert config.is_modified(make_entry("a", mtime_ns=2), old) is True
        assert config.is_modified(make_entry("a", mtime_ns=1), old) is False


class TestFromEnv:
    """Tests for TrackerConfig.from_env."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DIRWATCH_IGNORE", raising=False)
        monkeypatch.delenv("DIRWATCH_INCLUDE_HIDDEN", raising=False)
        monkeypatch.delenv("DIRWATCH_FOLLOW_SYMLINKS", raising=False)

        config = TrackerConfig.from_env()

        assert config.ignore_patterns == []
        assert config.include_hidden is True
        assert config.follow_symlinks is True

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("DIRWATCH_IGNORE", "*.tmp, *.swp,,")
        monkeypatch.setenv("DIRWATCH_INCLUDE_HIDDEN", "false")
        monkeypatch.setenv("DIRWATCH_FOLLOW_SYMLINKS", "0")

        config = TrackerConfig.from_env()

        assert config.ignore_patterns == ["*.tmp", "*.swp"]
        assert config.include_hidden is False
        assert config.follow_symlinks is False

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_true_flags(self, monkeypatch, value):
        monkeypatch.setenv("DIRWATCH_INCLUDE_HIDDEN", value)
        assert TrackerConfig.from_env().include_hidden is True

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DIRWATCH_IGNORE", "*.tmp")
        config = TrackerConfig.from_env(ignore_patterns=["*.bak"], observer_timeout=0.2)

        assert config.ignore_patterns == ["*.bak"]
        assert config.observer_timeout == 0.2
