"""Configuration for metalhost."""
from metalhost.config.logging_setup import configure_logging
from metalhost.config.settings import ResolverSettings, Settings, settings

__all__ = ["settings", "Settings", "ResolverSettings", "configure_logging"]
