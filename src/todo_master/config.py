# src/todo_master/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODO"

STORE_MEMORY = "memory"
STORE_SQLITE = "sqlite"
STORE_BACKENDS = (STORE_MEMORY, STORE_SQLITE)

DEMO_TASKS: tuple[tuple[str, bool], ...] = (
    ("Learn React", False),
    ("Build a todo app", True),
    ("Deploy to production", False),
)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Store ----
    store_backend: str
    seed_demo: bool

    # ---- Document collection (sqlite backend) ----
    data_dir: Path
    db_path: Path
    collection: str
    poll_interval_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Todo Master").strip() or "Todo Master"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        store_backend = _env(_k("STORE"), STORE_MEMORY).strip().lower()
        if store_backend not in STORE_BACKENDS:
            store_backend = STORE_MEMORY
        seed_demo = _env_bool(_k("SEED_DEMO"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo_master"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "todos.sqlite3")
        collection = _env(_k("COLLECTION"), "todos").strip() or "todos"
        poll_interval_seconds = max(0.05, _env_float(_k("POLL_INTERVAL_SECONDS"), 0.5))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            store_backend=store_backend,
            seed_demo=seed_demo,
            data_dir=data_dir,
            db_path=db_path,
            collection=collection,
            poll_interval_seconds=poll_interval_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env once (never overriding real env vars) and cache the result."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
