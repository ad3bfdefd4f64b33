from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(populate_by_name=True)

    flight_api_key: SecretStr = Field(..., alias="FLIGHT_API_KEY")
    base_url: str = Field("https://api.flightapi.io", alias="FLIGHT_API_BASE_URL")
    timeout_s: float = Field(200.0, alias="FLIGHT_API_TIMEOUT_S")
    currency: str = Field("USD", alias="FLIGHT_API_CURRENCY")
    inr_per_usd: float = Field(83.0, alias="INR_PER_USD")
    airports_file: Optional[str] = Field(None, alias="AIRPORTS_FILE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")

    @field_validator("flight_api_key")
    @classmethod
    def _key_non_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("FLIGHT_API_KEY must be a non-empty string")
        return v

    @field_validator("timeout_s", "inr_per_usd")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("FLIGHT_API_CURRENCY must be a 3-letter ISO code")
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def secrets(self) -> tuple:
        """Literal values that must never appear in output."""
        return (self.flight_api_key.get_secret_value(),)


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
