"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class MirrorConfig(BaseModel):
    enabled: bool = False
    spreadsheet_id: str = ""
    ledger_sheet: str = "Trades"
    taxonomy_sheet: str = "Config"
    access_token_env: str = "TRADELOG_GOOGLE_TOKEN"  # Name of env var holding the OAuth token
    timeout: float = 30.0  # seconds
    max_retries: int = 3

    @property
    def access_token(self) -> str:
        return os.environ.get(self.access_token_env, "")


class InsightConfig(BaseModel):
    enabled: bool = False
    api_key_env: str = "GEMINI_API_KEY"
    model: str = "gemini-2.5-flash"
    timeout: float = 60.0

    @property
    def api_key(self) -> str:
        return os.environ.get(self.api_key_env, "")


class StorageConfig(BaseModel):
    path: str = "data/tradelog.json"


class JournalConfig(BaseModel):
    # Reject unknown tag values instead of registering them on the fly
    require_registered_tags: bool = False


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    insight: InsightConfig = Field(default_factory=InsightConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "TRADELOG_", "env_nested_delimiter": "__"}

    def validate_mirror(self) -> None:
        """Check that an enabled mirror can actually be reached."""
        from .errors import ConfigError

        if not self.mirror.enabled:
            return

        if not self.mirror.spreadsheet_id:
            raise ConfigError(
                "Mirror is enabled but no spreadsheet id is configured "
                "(TRADELOG_MIRROR__SPREADSHEET_ID)."
            )
        if not self.mirror.access_token:
            raise ConfigError(
                f"Mirror is enabled but {self.mirror.access_token_env} is not set."
            )


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    return Settings(**data)
