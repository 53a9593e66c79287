"""Runtime settings for the Here server and client agent.

Settings are loaded from environment variables (or a ``.env`` file) with
sensible defaults. The bind address and the client identity live in the TOML
config files handled by :mod:`here.core.config`.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from here import __version__


class Settings(BaseSettings):
    """Server settings loaded from environment variables.

    Every field can be overridden with its ``HERE_*`` alias, or by name when
    constructing the class directly (tests do this).
    """

    # Application metadata
    app_name: str = Field(default="Here", alias="HERE_APP_NAME")
    app_version: str = Field(default=__version__, alias="HERE_APP_VERSION")

    # Storage
    database_path: str = Field(default="./client-info.db", alias="HERE_DATABASE_PATH")

    # Lease lifetime assigned to every new registration. Seconds.
    default_lifetime_seconds: int = Field(default=60, ge=1, alias="HERE_DEFAULT_LIFETIME")

    # Reaper cadence. Seconds.
    reaper_enabled: bool = Field(default=True, alias="HERE_REAPER_ENABLED")
    reaper_clean_interval: float = Field(default=0.5, ge=0, alias="HERE_REAPER_CLEAN_INTERVAL")
    reaper_finished_delay: float = Field(default=10.0, ge=0, alias="HERE_REAPER_FINISHED_DELAY")
    reaper_error_delay: float = Field(default=10.0, ge=0, alias="HERE_REAPER_ERROR_DELAY")

    # Config file holding the bind address
    config_path: str = Field(default="./server.conf.toml", alias="HERE_SERVER_CONFIG")

    log_level: str = Field(default="INFO", alias="HERE_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )


class ClientSettings(BaseSettings):
    """Client agent settings loaded from environment variables."""

    # Fixed delay between probe and registration retries. Seconds.
    retry_delay: float = Field(default=1.0, ge=0, alias="HERE_CLIENT_RETRY_DELAY")
    http_timeout_seconds: float = Field(default=10.0, gt=0, alias="HERE_CLIENT_HTTP_TIMEOUT")

    # Config file holding account, password and API URL
    config_path: str = Field(default="./client.conf.toml", alias="HERE_CLIENT_CONFIG")

    log_level: str = Field(default="INFO", alias="HERE_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()
