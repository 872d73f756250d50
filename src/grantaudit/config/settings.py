"""Application settings loader from YAML configuration."""
import os
import yaml
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

from grantaudit.utils.exceptions import ConfigError

RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"


@dataclass(frozen=True)
class ModelConfiguration:
    """One entry of the ordered generative fallback list."""
    name: str
    model: str
    temperature: float = 0.1
    max_output_tokens: int = 8192
    strict_schema: bool = True


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str
    app_version: str

    # Logging
    log_level: str

    # Processing
    chunk_max_chars: int
    min_chunk_chars: int
    min_text_length: int
    low_yield_chars_per_transaction: int

    # LLM
    llm_max_retries: int
    llm_initial_delay_seconds: float
    llm_backoff_factor: float
    llm_max_delay_seconds: float
    llm_timeout_seconds: float
    llm_configurations: List[ModelConfiguration] = field(default_factory=list)

    # OCR
    ocr_backend: str = "gemini"
    ocr_model: str = "gemini-2.5-flash"

    # Policy
    policy_file: Path = RESOURCES_DIR / "policy.json"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML file."""
        if config_path is None:
            override = os.getenv("GRANTAUDIT_SETTINGS")
            config_path = Path(override) if override else RESOURCES_DIR / "config.yaml"

        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        try:
            configurations = [
                ModelConfiguration(
                    name=entry["name"],
                    model=entry["model"],
                    temperature=float(entry.get("temperature", 0.1)),
                    max_output_tokens=int(entry.get("max_output_tokens", 8192)),
                    strict_schema=bool(entry.get("strict_schema", True))
                )
                for entry in config["llm"]["configurations"]
            ]
            if not configurations:
                raise ConfigError("llm.configurations must list at least one model configuration")

            policy_file = Path(config["policy"]["file"])
            if not policy_file.is_absolute():
                policy_file = config_path.parent / policy_file

            return cls(
                app_name=config["app"]["name"],
                app_version=str(config["app"]["version"]),
                log_level=config["logging"]["level"],
                chunk_max_chars=int(config["processing"]["chunk_max_chars"]),
                min_chunk_chars=int(config["processing"]["min_chunk_chars"]),
                min_text_length=int(config["processing"]["min_text_length"]),
                low_yield_chars_per_transaction=int(config["processing"]["low_yield_chars_per_transaction"]),
                llm_max_retries=int(config["llm"]["max_retries"]),
                llm_initial_delay_seconds=float(config["llm"]["initial_delay_seconds"]),
                llm_backoff_factor=float(config["llm"]["backoff_factor"]),
                llm_max_delay_seconds=float(config["llm"]["max_delay_seconds"]),
                llm_timeout_seconds=float(config["llm"]["timeout_seconds"]),
                llm_configurations=configurations,
                ocr_backend=config["ocr"]["backend"],
                ocr_model=config["ocr"]["model"],
                policy_file=policy_file
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}")


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings
