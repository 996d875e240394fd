"""Configuration module for atomic rules."""

from atomic_rules.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
