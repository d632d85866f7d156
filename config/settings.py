"""Configuration settings and data models."""

import json
import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("tournament_config.json")


class DatabaseConfig(BaseModel):
    """SQLite storage settings."""

    path: str = Field(default="tournaments.db", description="SQLite database file")


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    allowed_origins: list[str] = Field(
        default=[], description="CORS origins; empty allows localhost only"
    )


class BracketConfig(BaseModel):
    """Bracket engine behaviour."""

    double_elimination_mode: Literal["degrade", "reject"] = Field(
        default="degrade",
        description=(
            "'degrade' plays DOUBLE_ELIMINATION as single elimination, "
            "'reject' refuses to start such tournaments"
        ),
    )
    shuffle_seed: int | None = Field(
        default=None, description="Fixed seed for random draws (testing only)"
    )


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class AppConfig(BaseModel):
    """Complete application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    brackets: BracketConfig = Field(default_factory=BracketConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a JSON or YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(),
                f,
                default_flow_style=False,
                indent=2,
            )

    def apply_env_overrides(self) -> "AppConfig":
        """Return a copy with environment variable overrides applied."""
        config = self.model_copy(deep=True)

        db_path = os.environ.get("TOURNAMENT_DB_PATH")
        if db_path:
            config.database.path = db_path

        port = os.environ.get("PORT")
        if port:
            try:
                config.server.port = int(port)
            except ValueError as e:
                raise ValueError(f"PORT must be an integer, got: {port!r}") from e

        origins = os.environ.get("ALLOWED_ORIGINS")
        if origins:
            config.server.allowed_origins = [
                origin.strip() for origin in origins.split(",") if origin.strip()
            ]

        log_level = os.environ.get("LOG_LEVEL")
        if log_level:
            config.system = SystemConfig(log_level=log_level)

        return config


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        database=DatabaseConfig(path="tournaments.db"),
        server=ServerConfig(host="0.0.0.0", port=8000, allowed_origins=[]),
        brackets=BracketConfig(double_elimination_mode="degrade", shuffle_seed=None),
        system=SystemConfig(log_level="INFO"),
    )


def get_default_config(config_path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load configuration, creating the file from the template if needed."""
    if not config_path.exists():
        template_config = get_template_config()
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(template_config.model_dump(), f, indent=2)
        logger.info(f"Created default configuration at {config_path}")
    return AppConfig.load_from_file(config_path).apply_env_overrides()
