from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

DOCUMENTS_PATH = Path(os.path.expanduser("~")) / "Documents"
DEFAULT_APP_NAME = "Attendance Ledger"


def _data_dir(app_name: str) -> Path:
    return Path(os.getenv("LEDGER_DATA_DIR", str(DOCUMENTS_PATH / app_name))).expanduser()


def _log_level() -> str:
    level = os.getenv("LEDGER_LOG_LEVEL", "WARNING").strip().upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    logger.warning("Unknown LEDGER_LOG_LEVEL %r, using WARNING", level)
    return "WARNING"


@dataclass(frozen=True)
class Settings:
    app_name: str
    data_dir: Path
    store_path: Path
    schedule_path: Path
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        app_name = os.getenv("APP_NAME", DEFAULT_APP_NAME)
        data_dir = _data_dir(app_name)
        return cls(
            app_name=app_name,
            data_dir=data_dir,
            store_path=Path(os.getenv("LEDGER_STORE_PATH", str(data_dir / "ledger.json"))).expanduser(),
            schedule_path=Path(os.getenv("LEDGER_SCHEDULE_PATH", str(data_dir / "schedule.json"))).expanduser(),
            log_level=_log_level(),
        )


settings = Settings.from_env()


def refresh_settings() -> Settings:
    """Rebuild the settings object from the current environment."""

    global settings  # noqa: PLW0603 - module-level singleton

    settings = Settings.from_env()
    logger.debug("Settings refreshed: %s", settings)
    return settings
