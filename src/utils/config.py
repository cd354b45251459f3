"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.

Settings are read once at process start. The engine itself never touches
the environment: it receives an immutable EngineConfig built from Settings.
"""

import base64
import binascii
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from pydantic import model_validator
from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class EngineConfig:
    """Explicit configuration injected into the client and the engine."""
    login: str
    password: str
    base_url: str = "https://api.dataforseo.com"
    default_location_code: int = 2840  # United States
    default_language_code: str = "en"

    # Transport
    api_timeout: float = 30.0

    # Retry / backoff
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0

    # Outer per-request deadline covering all nested retries
    request_timeout: float = 120.0


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DataForSEO credentials: either login/password or DATAFORSEO_BASE64
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None
    DATAFORSEO_BASE64: Optional[str] = None
    DATAFORSEO_BASE_URL: str = "https://api.dataforseo.com"

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Default request settings
    DEFAULT_LOCATION_CODE: int = 2840
    DEFAULT_LANGUAGE_CODE: str = "en"

    # Retry
    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 10.0

    # Timeouts (seconds)
    API_TIMEOUT: float = 30.0
    REQUEST_TIMEOUT: float = 120.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase

    @model_validator(mode="after")
    def _require_credentials(self) -> "Settings":
        has_pair = bool(self.DATAFORSEO_LOGIN and self.DATAFORSEO_PASSWORD)
        if not has_pair and not self.DATAFORSEO_BASE64:
            raise ValueError(
                "Missing DataForSEO credentials. Provide either DATAFORSEO_BASE64 "
                "(base64 encoded login:password) or both DATAFORSEO_LOGIN and "
                "DATAFORSEO_PASSWORD."
            )
        return self

    def credentials(self) -> Tuple[str, str]:
        """
        Resolve the login/password pair.

        DATAFORSEO_BASE64 takes precedence when set.

        Raises:
            ValueError: If DATAFORSEO_BASE64 cannot be decoded into login:password
        """
        if self.DATAFORSEO_BASE64:
            try:
                decoded = base64.b64decode(self.DATAFORSEO_BASE64).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise ValueError(f"DATAFORSEO_BASE64 is not valid base64: {e}") from e
            login, sep, password = decoded.partition(":")
            if not sep or not login or not password:
                raise ValueError("DATAFORSEO_BASE64 must encode 'login:password'")
            return login, password
        return self.DATAFORSEO_LOGIN, self.DATAFORSEO_PASSWORD

    def to_engine_config(self) -> EngineConfig:
        """Build the immutable configuration handed to the engine."""
        login, password = self.credentials()
        return EngineConfig(
            login=login,
            password=password,
            base_url=self.DATAFORSEO_BASE_URL.rstrip("/"),
            default_location_code=self.DEFAULT_LOCATION_CODE,
            default_language_code=self.DEFAULT_LANGUAGE_CODE,
            api_timeout=self.API_TIMEOUT,
            max_retries=self.MAX_RETRIES,
            retry_base_delay=self.RETRY_BASE_DELAY,
            retry_max_delay=self.RETRY_MAX_DELAY,
            request_timeout=self.REQUEST_TIMEOUT,
        )


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
