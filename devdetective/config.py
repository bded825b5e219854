from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = Path("config/settings.yaml")
DEFAULT_STORE_PATH = Path("~/.devdetective/store.json")


@dataclass(slots=True)
class ApiConfig:
    token_env: str = "GITHUB_TOKEN"
    per_page: int = 100
    sort: str = "updated"
    max_pages: int = 1
    timeout: float = 30.0

    def resolve_token(self) -> Optional[str]:
        token = os.getenv(self.token_env, "").strip()
        return token or None


@dataclass(slots=True)
class StorageConfig:
    path: Path = DEFAULT_STORE_PATH
    max_history: int = 20


@dataclass(slots=True)
class OutputConfig:
    directory: Path = Path("reports")
    format: str = "markdown"


@dataclass(slots=True)
class LoggingConfig:
    level: str = "WARNING"


@dataclass(slots=True)
class AppConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Optional[Path] = None) -> AppConfig:
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return AppConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    api_raw = raw.get("api", {})
    storage_raw = raw.get("storage", {})
    output_raw = raw.get("output", {})
    logging_raw = raw.get("logging", {})

    config = AppConfig(
        api=ApiConfig(
            token_env=str(api_raw.get("token_env", "GITHUB_TOKEN")),
            per_page=int(api_raw.get("per_page", 100)),
            sort=str(api_raw.get("sort", "updated")),
            max_pages=int(api_raw.get("max_pages", 1)),
            timeout=float(api_raw.get("timeout", 30)),
        ),
        storage=StorageConfig(
            path=Path(storage_raw.get("path", str(DEFAULT_STORE_PATH))),
            max_history=int(storage_raw.get("max_history", 20)),
        ),
        output=OutputConfig(
            directory=Path(output_raw.get("directory", "reports")),
            format=str(output_raw.get("format", "markdown")),
        ),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "WARNING")).upper(),
        ),
    )

    return config
