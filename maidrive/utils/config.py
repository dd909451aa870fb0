"""
Configuration management with schema validation.
Settings come from config/settings.yaml with ${VAR:default} substitution from the environment.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

CONFIG_DIR = Path(os.getenv("MAIDRIVE_CONFIG_DIR", "config"))
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"

# Placeholder for a setting whose variable and default are both empty
_UNSET = object()


class AppSettings(BaseModel):
    name: str = "MAi Drive"
    version: str = "1.0.0"
    environment: str = "development"


class ApiSettings(BaseModel):
    base_url: str = "http://localhost:5399"
    platform: Optional[str] = None
    # Per-platform base URLs, e.g. the Android emulator reaches the host at 10.0.2.2
    platform_urls: Dict[str, str] = Field(default_factory=dict)
    connection_timeout: float = 10.0
    read_timeout: float = 30.0

    def resolve_base_url(self) -> str:
        """Pick the base URL for the configured platform, falling back to base_url."""
        if self.platform and self.platform in self.platform_urls:
            return self.platform_urls[self.platform]
        return self.base_url


class StorageSettings(BaseModel):
    data_dir: str = "data"
    token_file: str = "auth_token.json"
    language_file: str = "language.yaml"
    persist_token: bool = True
    encrypt_tokens: bool = True
    token_key: Optional[str] = None

    @property
    def token_path(self) -> Path:
        return Path(self.data_dir) / self.token_file

    @property
    def language_path(self) -> Path:
        return Path(self.data_dir) / self.language_file


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = "logs/maidrive.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class I18nSettings(BaseModel):
    default_language: str = "fa"


class DevSettings(BaseModel):
    show_verification_code: bool = False


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    i18n: I18nSettings = Field(default_factory=I18nSettings)
    dev: DevSettings = Field(default_factory=DevSettings)


class ConfigManager:
    """Loads and validates client settings"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
        self._settings: Optional[Settings] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute environment variables"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                var_name, _, default = var_expr.partition(":")
                # A variable set to "" counts as unset and takes the inline default
                resolved = os.getenv(var_name.strip()) or default.strip()
                return resolved if resolved else _UNSET
        elif isinstance(value, dict):
            substituted = {k: self._substitute_env_vars(v) for k, v in value.items()}
            # Unset keys are dropped so the model default applies
            return {k: v for k, v in substituted.items() if v is not _UNSET}
        elif isinstance(value, list):
            return [item for item in map(self._substitute_env_vars, value) if item is not _UNSET]
        return value

    def load_settings(self) -> Settings:
        """Load and validate settings.yaml; a missing file yields defaults"""
        if not self.settings_path.exists():
            logger.info("Settings file not found, using defaults", path=str(self.settings_path))
            self._settings = Settings()
            return self._settings

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings from {self.settings_path}: {e}")

        if not isinstance(raw_data, dict):
            raise ConfigError(f"Settings file must contain a mapping: {self.settings_path}")

        processed_data = self._substitute_env_vars(raw_data)
        try:
            self._settings = Settings(**processed_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {self.settings_path}: {e}")
        return self._settings
