"""Application configuration."""

import os
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_RECAPTCHA_ENDPOINT = "https://www.google.com/recaptcha/api/siteverify"
CONFIG_FILE_ENV = "GATEWAY_CONFIG_FILE"


class DomainSettings(BaseModel):
    """One registered consumer domain, as written in the config file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    secret_key_v2: Optional[str] = None
    secret_key_v3: Optional[str] = None
    score_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class RateLimitSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    active: bool = True
    window_ms: int = Field(default=15 * 60 * 1000, gt=0)
    max: int = Field(default=100, gt=0)

    @property
    def limit_string(self) -> str:
        """Limit in the notation slowapi understands, e.g. "100/900 seconds"."""
        window_seconds = max(1, self.window_ms // 1000)
        return f"{self.max}/{window_seconds} seconds"


class Settings(BaseSettings):
    """Gateway settings loaded from env vars, .env and an optional JSON file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "reCAPTCHA Gateway"
    environment: Literal["development", "test", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = 3000

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None  # Set to enable daily info/error log files

    # Registered consumer domains
    domains: list[DomainSettings] = []

    # Client address policy
    allowed_ips: list[str] = Field(
        default=[],
        validation_alias=AliasChoices("allowed_ips", "allowedIPs"),
    )
    auto_validate_local_ip: bool = Field(
        default=False,
        validation_alias=AliasChoices("auto_validate_local_ip", "autoValidateLocalIp"),
    )

    # Upstream verifier
    recaptcha_endpoint: str = Field(
        default=DEFAULT_RECAPTCHA_ENDPOINT,
        validation_alias=AliasChoices("recaptcha_endpoint", "recaptchaEndpoint"),
    )
    recaptcha_timeout_seconds: float = Field(default=10.0, gt=0)
    recaptcha_retries: int = Field(default=0, ge=0, le=5)  # Connection errors only

    # Rate limiting
    rate_limit: RateLimitSettings = Field(
        default_factory=RateLimitSettings,
        validation_alias=AliasChoices("rate_limit", "rateLimit"),
    )

    @field_validator("allowed_ips", mode="before")
    @classmethod
    def parse_allowed_ips(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [ip.strip() for ip in v.split(",") if ip.strip()]
        return v

    @field_validator("recaptcha_endpoint", mode="before")
    @classmethod
    def default_endpoint_when_blank(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_RECAPTCHA_ENDPOINT
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # JSON file keys are camelCase (domains, allowedIPs, rateLimit)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=config_files()),
            file_secret_settings,
        )


def config_files() -> list[str]:
    """JSON config files to read, later entries overriding earlier ones.

    GATEWAY_CONFIG_FILE names a single file. Otherwise config.json is
    overlaid with config.<environment>.json (e.g. config.production.json).
    Missing files are skipped.
    """
    explicit = os.getenv(CONFIG_FILE_ENV)
    if explicit:
        return [explicit]
    environment = os.getenv("ENVIRONMENT", "development").lower()
    return ["config.json", f"config.{environment}.json"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
