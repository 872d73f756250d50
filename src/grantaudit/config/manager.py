"""Secrets configuration: Gemini credentials from environment or a JSON file."""
import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from grantaudit.utils.exceptions import ConfigError
from grantaudit.utils.logger import app_home

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass
class Config:
    """Runtime credentials and overrides."""
    gemini_api_key: str
    log_level: str = "INFO"
    settings_path: Optional[str] = None


class ConfigManager:
    """Loads runtime configuration; environment variables win over the file."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or app_home()
        self.config_file = self.config_dir / "config.json"

    def load_config(self) -> Optional[Config]:
        """Load configuration from the environment, falling back to config.json."""
        file_values = self._read_file()
        api_key = next((os.environ[name] for name in API_KEY_ENV_VARS if os.getenv(name)), None)
        if api_key is None:
            api_key = file_values.get("gemini_api_key")

        if api_key is None and not file_values:
            return None

        return Config(
            gemini_api_key=api_key or "",
            log_level=os.getenv("GRANTAUDIT_LOG_LEVEL", file_values.get("log_level", "INFO")),
            settings_path=os.getenv("GRANTAUDIT_SETTINGS", file_values.get("settings_path"))
        )

    def save_config(self, config: Config) -> None:
        """Save configuration as JSON, readable by the owner only."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(asdict(config), f, indent=2)
            os.chmod(self.config_file, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def validate_config(self, config: Config) -> tuple[bool, str]:
        """Validate configuration values."""
        if not config.gemini_api_key:
            return False, "Gemini API key is required (set GEMINI_API_KEY)"

        if config.settings_path and not Path(config.settings_path).exists():
            return False, f"Settings file not found: {config.settings_path}"

        if config.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return False, f"Unknown log level: {config.log_level}"

        return True, "Configuration is valid"

    def _read_file(self) -> dict:
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")
