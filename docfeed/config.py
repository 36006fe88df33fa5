import logging
import os
import sys
from pathlib import Path
from typing import Any

import logfire
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


# =============================================================================
# Feed Configuration
# =============================================================================


class GsaConfig(BaseModel):
    """Search appliance feed endpoint (nested in Config, uses env_nested_delimiter)."""

    hostname: str = "localhost"
    port: int = 19900  # Feed port; 19902 when secure
    secure: bool = False
    character_encoding: str = "UTF-8"  # Used to percent-encode DocIds
    timeout: float = 30.0

    @property
    def feed_url(self) -> str:
        """URL of the appliance's xmlfeed endpoint."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.hostname}:{self.port}/xmlfeed"


class FeedConfig(BaseModel):
    """How DocIds are turned into feed URLs and batched."""

    datasource: str = "docfeed"  # Feed datasource name on the appliance
    base_url: str = "http://localhost:5678/doc"  # Prefix of every encoded DocId
    pass_doc_id_unmodified: bool = False  # DocIds are already complete URLs
    max_feed_size: int = Field(default=5000, ge=1)  # Items per feed file


class BackoffConfig(BaseModel):
    """Default retry policy for pushes."""

    max_tries: int = Field(default=12, ge=0)
    initial_sleep_seconds: float = Field(default=5.0, ge=0)


# =============================================================================
# Transform Configuration
# =============================================================================


class TransformStageConfig(BaseModel):
    """A command-line transform stage."""

    name: str
    command: str | list[str]  # A string is split with shell rules
    accepts_parameters: bool = True
    working_directory: Path | None = None


class TransformConfig(BaseModel):
    """Ordered transform stages applied to document content before serving."""

    stages: list[TransformStageConfig] = []


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by DOCFEED_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("DOCFEED_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from DOCFEED_LOG_FILE env var."""
        return os.environ.get("DOCFEED_LOG_FILE")


class Config(BaseSettings):
    gsa: GsaConfig = GsaConfig()
    feed: FeedConfig = FeedConfig()
    backoff: BackoffConfig = BackoffConfig()
    transform: TransformConfig = TransformConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "DOCFEED_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows DOCFEED_GSA__HOSTNAME override
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - DOCFEED_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so all loggers pick up
    the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(config.level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Spans and errors from transform stages; exported only when a token is configured
    logfire.configure(send_to_logfire="if-token-present", console=False)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
