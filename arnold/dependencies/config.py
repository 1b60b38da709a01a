"""
FastAPI dependency utilities for injecting configuration.
"""

from functools import lru_cache

from fastapi import Depends

from arnold.core.config import AppSettings, SlackSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def get_slack_settings(settings: AppSettings = Depends(get_app_settings)) -> SlackSettings:
    """Slack settings, resolved through ``get_app_settings`` so tests can override it."""
    return settings.slack


__all__ = ["get_app_settings", "get_slack_settings"]
