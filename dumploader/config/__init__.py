"""Configuration module -- exports Settings and load_config."""

from dumploader.config.loader import load_config
from dumploader.config.settings import Settings

__all__ = ["Settings", "load_config"]
