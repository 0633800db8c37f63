"""Settings storage."""

from .store import ConfigStore, parse_settings

__all__ = ["ConfigStore", "parse_settings"]
