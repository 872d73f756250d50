"""Configuration module."""
from .manager import Config, ConfigManager
from .settings import AppSettings, ModelConfiguration, get_settings

__all__ = ["Config", "ConfigManager", "AppSettings", "ModelConfiguration", "get_settings"]
