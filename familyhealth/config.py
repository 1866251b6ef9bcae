"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no API keys in code)
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


class StoreConfig(BaseModel):
    """Remote table store (PostgREST / Supabase REST) configuration."""

    backend: Literal["postgrest", "memory"] = Field(
        default="memory", description="Which TableStore implementation to build"
    )
    url: str | None = Field(default=None, description="Project URL, e.g. https://xyz.supabase.co")
    api_key: str | None = Field(default=None, description="Anon or service API key")
    schema_name: str = Field(default="public", description="Database schema exposed by the API")
    timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for a single store request"
    )

    @field_validator("url")
    def strip_trailing_slash(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("store url must start with http:// or https://")
        return v.rstrip("/")

    @model_validator(mode="after")
    def postgrest_needs_credentials(self) -> "StoreConfig":
        """A remote backend is useless without an endpoint and a key."""
        if self.backend == "postgrest" and (not self.url or not self.api_key):
            raise ValueError("postgrest backend requires SUPABASE_URL and SUPABASE_ANON_KEY")
        return self


class GamificationConfig(BaseModel):
    """Points and badges toggles."""

    enabled: bool = Field(default=True, description="Award points/badges on logged activity")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    store: StoreConfig
    gamification: GamificationConfig
    logging: LoggingConfig

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    def _backend(val: str | None, url: str | None) -> Literal["postgrest", "memory"]:
        if val is None or not val.strip():
            return "postgrest" if url else "memory"
        in_memory = val.strip().lower() in {"memory", "in-memory", "inmemory"}
        return "memory" if in_memory else "postgrest"

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    url = os.getenv("SUPABASE_URL") or None
    store_config = StoreConfig(
        backend=_backend(os.getenv("STORE_BACKEND"), url),
        url=url,
        api_key=os.getenv("SUPABASE_ANON_KEY") or None,
        schema_name=os.getenv("SUPABASE_SCHEMA", "public"),
        timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "10.0")),
    )

    gamification_config = GamificationConfig(
        enabled=_parse_bool(os.getenv("GAMIFICATION_ENABLED"), True),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        store=store_config,
        gamification=gamification_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def reset_config_cache() -> None:
    """Forget the cached configuration so the next get_config() re-reads the env."""
    get_config.cache_clear()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")

        if config.store.backend == "postgrest":
            print(f"Remote store configured at {config.store.url}")
        else:
            print("Using in-memory store (no SUPABASE_URL set)")

    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nSTORE CONFIGURATION")
    print(f"Backend: {config.store.backend}")
    print(f"URL: {config.store.url or '-'}")
    print(f"Schema: {config.store.schema_name}")
    print(f"Timeout: {config.store.timeout_seconds}s")

    print("\nGAMIFICATION")
    print(f"Enabled: {config.gamification.enabled}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
