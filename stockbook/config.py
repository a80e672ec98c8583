from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
DB_FILE_NAME = "inventory.db"
ENV_DATA_DIR = "STOCKBOOK_DATA_DIR"
ENV_BUSY_TIMEOUT_MS = "STOCKBOOK_BUSY_TIMEOUT_MS"
ENV_LOG_LEVEL = "STOCKBOOK_LOG_LEVEL"
SESSION_DATA_DIR_KEY = "stockbook_data_dir"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    busy_timeout_ms: int = 3000
    log_level: str = "INFO"


def _default_data_dir() -> Path:
    return Path.home() / ".stockbook"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> Path:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # Written to the default folder so the next launch finds it.
    default_dir = _default_data_dir()
    default_dir.mkdir(parents=True, exist_ok=True)
    cfg = default_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return data_dir


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r}).")


def load_settings(data_dir: Optional[str | Path] = None) -> Settings:
    # Priority order:
    # 1) Explicit argument (session state from the Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if data_dir:
        resolved = Path(data_dir).expanduser().resolve()
    elif os.getenv(ENV_DATA_DIR):
        resolved = Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        resolved = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    resolved.mkdir(parents=True, exist_ok=True)
    return Settings(
        data_dir=resolved,
        db_path=resolved / DB_FILE_NAME,
        busy_timeout_ms=_env_int(ENV_BUSY_TIMEOUT_MS, 3000),
        log_level=os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO",
    )


@st.cache_resource
def _cached_settings(data_dir: Optional[str]) -> Settings:
    return load_settings(data_dir)


def get_settings() -> Settings:
    return _cached_settings(st.session_state.get(SESSION_DATA_DIR_KEY))
