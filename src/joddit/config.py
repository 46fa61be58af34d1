"""Runtime settings read from the environment.

Environment variables (all optional):
    JODDIT_DATA_DIR          – directory holding the on-device note slot (default: ``~/.joddit``)
    JODDIT_DATABASE_URL      – Postgres connection string for the remote store
    JODDIT_DEEPGRAM_API_KEY  – Deepgram API key used for voice notes
    JODDIT_SYNC_INTERVAL     – seconds between background reconciliations (default: 5)
    JODDIT_LOG_LEVEL         – root log level (default: INFO)
    JODDIT_LOG_JSON          – ``1``/``true``/``yes`` to emit JSON log lines
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    data_dir: Path
    database_url: str = ""
    deepgram_api_key: str = ""
    sync_interval: float = 5.0
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=Path(os.getenv("JODDIT_DATA_DIR", "~/.joddit")).expanduser(),
            database_url=os.getenv("JODDIT_DATABASE_URL", ""),
            deepgram_api_key=os.getenv("JODDIT_DEEPGRAM_API_KEY", ""),
            sync_interval=float(os.getenv("JODDIT_SYNC_INTERVAL", "5")),
            log_level=os.getenv("JODDIT_LOG_LEVEL", "INFO"),
            log_json=_env_flag("JODDIT_LOG_JSON"),
        )
