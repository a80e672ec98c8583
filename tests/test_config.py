import json
import logging
import logging.handlers

import pytest

from stockbook import config
from stockbook.config import Settings, load_settings, persist_data_dir
from stockbook.logging_setup import setup_logging


@pytest.fixture()
def home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setattr(config, "_default_data_dir", lambda: home / ".stockbook")
    for name in (config.ENV_DATA_DIR, config.ENV_BUSY_TIMEOUT_MS, config.ENV_LOG_LEVEL):
        monkeypatch.delenv(name, raising=False)
    return home


def test_default_data_dir(home):
    settings = load_settings()
    assert settings.data_dir == (home / ".stockbook").resolve()
    assert settings.db_path == settings.data_dir / "inventory.db"
    assert settings.busy_timeout_ms == 3000
    assert settings.log_level == "INFO"
    assert settings.data_dir.is_dir()


def test_env_overrides(home, tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_DATA_DIR, str(tmp_path / "env-dir"))
    monkeypatch.setenv(config.ENV_BUSY_TIMEOUT_MS, "1500")
    monkeypatch.setenv(config.ENV_LOG_LEVEL, "debug")

    settings = load_settings()
    assert settings.data_dir == (tmp_path / "env-dir").resolve()
    assert settings.busy_timeout_ms == 1500
    assert settings.log_level == "DEBUG"


def test_bad_timeout_is_rejected(home, monkeypatch):
    monkeypatch.setenv(config.ENV_BUSY_TIMEOUT_MS, "soon")
    with pytest.raises(ValueError, match=config.ENV_BUSY_TIMEOUT_MS):
        load_settings()


def test_explicit_dir_wins_over_env(home, tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_DATA_DIR, str(tmp_path / "env-dir"))
    settings = load_settings(tmp_path / "explicit")
    assert settings.data_dir == (tmp_path / "explicit").resolve()


def test_persisted_data_dir_is_used_next_time(home, tmp_path):
    chosen = persist_data_dir(str(tmp_path / "chosen"))

    saved = json.loads((home / ".stockbook" / "settings.json").read_text(encoding="utf-8"))
    assert saved == {"data_dir": str(chosen)}
    assert load_settings().data_dir == chosen


def test_corrupt_settings_file_falls_back_to_default(home):
    (home / ".stockbook").mkdir(parents=True)
    (home / ".stockbook" / "settings.json").write_text("{oops", encoding="utf-8")
    assert load_settings().data_dir == (home / ".stockbook").resolve()


def test_setup_logging_adds_one_rotating_handler(tmp_path):
    settings = Settings(data_dir=tmp_path, db_path=tmp_path / "inventory.db", log_level="WARNING")
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        path = setup_logging(settings)
        setup_logging(settings)

        assert path == tmp_path / "logs" / "stockbook.log"
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert isinstance(added[0], logging.handlers.RotatingFileHandler)
        assert root.level == logging.WARNING

        logging.getLogger("stockbook.test").warning("hello log")
        added[0].flush()
        assert "hello log" in path.read_text(encoding="utf-8")
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)
