"""Configuration: environment-driven Settings plus YAML defaults."""

from docingest.config.loader import load_config
from docingest.config.settings import Settings

__all__ = ["Settings", "load_config"]
