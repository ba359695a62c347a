"""Tests for configuration validation."""

import pytest

from progpath.config import Config


def test_defaults_are_valid():
    Config.validate()
    assert "Progpath Configuration" in Config.display()


def test_rejects_out_of_range_loop_count(monkeypatch):
    monkeypatch.setattr(Config, "DEFAULT_LOOP_COUNT", 11)
    with pytest.raises(ValueError, match="PROGPATH_DEFAULT_LOOP_COUNT"):
        Config.validate()


def test_rejects_unknown_store(monkeypatch):
    monkeypatch.setattr(Config, "MAZE_STORE", "sqlite")
    with pytest.raises(ValueError, match="PROGPATH_MAZE_STORE"):
        Config.validate()


def test_display_names_store_location(monkeypatch):
    monkeypatch.setattr(Config, "MAZE_STORE", "json")
    assert "Maze directory" in Config.display()
    monkeypatch.setattr(Config, "MAZE_STORE", "postgres")
    assert "Database" in Config.display()
