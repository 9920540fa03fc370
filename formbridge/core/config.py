"""Application configuration using pydantic-settings."""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserConfig(BaseModel):
    """Browser connection configuration."""

    cdp_port: int = 9333
    connect_retries: int = 5
    retry_delay: float = 2.0
    timeout: int = 30000


class ExtensionConfig(BaseModel):
    """Relay identity and capture history settings."""

    extension_id: str = "formbridge-relay"
    version: str = "1.0.0"
    history_capacity: int = 10


class TimeoutConfig(BaseModel):
    """Caller-side timeouts for requests that need a page round trip."""

    capture_seconds: float = 30.0
    fill_seconds: float = 10.0
    default_seconds: float = 5.0


class ScannerConfig(BaseModel):
    """Page scanner limits."""

    page_description_limit: int = 1500


class FillConfig(BaseModel):
    """Fill executor behaviour."""

    # Raw CSS selector lookup as the last resolution step.
    allow_selector_fallback: bool = True


class StoreConfig(BaseModel):
    """Host-side capture persistence."""

    path: Path = Path("data/captures.json")
    max_entries: int = 10


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(env_prefix="FORMBRIDGE_", env_nested_delimiter="__")

    browser: BrowserConfig = BrowserConfig()
    extension: ExtensionConfig = ExtensionConfig()
    timeouts: TimeoutConfig = TimeoutConfig()
    scanner: ScannerConfig = ScannerConfig()
    fill: FillConfig = FillConfig()
    store: StoreConfig = StoreConfig()
    personal_data_path: Optional[Path] = None

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
