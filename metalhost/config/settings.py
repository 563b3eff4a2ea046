"""Application settings using Pydantic."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResolverSettings(BaseSettings):
    """Credential and config-step resolution settings.

    Secrets hold BMC credentials under two data keys. Config-step sources
    hold a YAML list of clean steps under a single key.
    """
    model_config = SettingsConfigDict(env_prefix="METALHOST_RESOLVER__")

    username_key: str = "username"
    password_key: str = "password"
    config_steps_key: str = "steps"


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_prefix="METALHOST_",
        env_nested_delimiter="__",
    )

    debug: bool = False
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    resolver: ResolverSettings = Field(default_factory=ResolverSettings)


settings = Settings()
