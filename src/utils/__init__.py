"""유틸리티 모듈"""
from .logging_config import setup_logging
from .settings_manager import JsonFileStore, SettingsManager, STORAGE_KEY

__all__ = ["setup_logging", "JsonFileStore", "SettingsManager", "STORAGE_KEY"]
