import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self

# =============================================================================
# Search Configuration
# =============================================================================


class SearchConfig(BaseModel):
    """Paging limits applied by the search orchestrator."""

    default_page_size: int = Field(default=10, ge=1)  # Used when a page request has no last
    max_page_size: int = Field(default=100, ge=1)  # Hard upper bound on last - first

    @model_validator(mode="after")
    def check_sizes(self) -> Self:
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self


class CountCacheConfig(BaseModel):
    """Count cache configuration (nested in Config, uses env_nested_delimiter)."""

    enabled: bool = True
    ttl_seconds: float = Field(default=300.0, gt=0)
    capacity: int = Field(default=1000, ge=1)  # Least recently used entries are evicted


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by CRS_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        return yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get("CRS_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class DatabaseConfig(BaseModel):
    """Database configuration (nested in Config, uses env_nested_delimiter)."""

    url: str = "sqlite+aiosqlite:///./crs.db"
    echo: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from CRS_LOG_FILE env var."""
        return os.environ.get("CRS_LOG_FILE")


class Config(BaseSettings):
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    search: SearchConfig = SearchConfig()
    count_cache: CountCacheConfig = CountCacheConfig()

    model_config = {
        "env_prefix": "CRS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows CRS_SEARCH__MAX_PAGE_SIZE override
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
        4. yaml_settings - CRS_CONFIG_FILE yaml
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

    Call once at startup, before the container is built.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
