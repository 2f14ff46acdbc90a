import json

import pytest

from dojo.core.logging import logger
from dojo.system.settings import Settings, SettingsData


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr(Settings, "_resolve_path", classmethod(lambda cls: path))
    return path


def test_defaults_when_missing(settings_path):
    s = Settings.load()
    assert s.data == SettingsData()
    assert s.path == settings_path


def test_update_normalizes_saves_and_notifies(settings_path):
    s = Settings.load()
    seen = []
    s.on_change(lambda data: seen.append(data.difficulty))
    s.update(difficulty=42, turn_delay_ms=-3)
    assert s.data.difficulty == 10
    assert s.data.turn_delay_ms == 700
    assert seen == [10]
    assert json.loads(settings_path.read_text())["difficulty"] == 10


def test_unknown_setting_rejected(settings_path):
    with pytest.raises(AttributeError):
        Settings.load().update(volume=11)


def test_load_backfills_and_drops_unknown(settings_path):
    settings_path.write_text(json.dumps({"difficulty": "3", "legacy_flag": True}), encoding="utf-8")
    s = Settings.load()
    assert s.data.difficulty == 3
    assert s.data.auto_delay_ms == 600
    assert not hasattr(s.data, "legacy_flag")


def test_corrupt_file_falls_back(settings_path):
    settings_path.write_text("[1, 2", encoding="utf-8")
    assert Settings.load().data == SettingsData()


def test_interactive_menu(settings_path):
    s = Settings.load()
    answers = iter(["1", "7"])
    s.interactive_menu(ask=lambda prompt: next(answers))
    assert s.data.difficulty == 7
    answers = iter(["4", "off"])
    s.interactive_menu(ask=lambda prompt: next(answers))
    assert s.data.audio is False


def test_log_level_follows_settings_unless_pinned(settings_path, monkeypatch):
    s = Settings.load()
    s.update(log_level="DEBUG")
    assert logger.is_enabled("DEBUG")
    monkeypatch.setenv("DOJO_LOG_LEVEL", "ERROR")
    logger.set_level("ERROR")
    s.update(log_level="INFO")
    assert not logger.is_enabled("INFO")
    logger.set_level("WARN")
