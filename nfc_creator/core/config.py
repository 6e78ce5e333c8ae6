"""
Application configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the tag creator loaded from ``NFC_*`` environment variables.

    Tag I/O defaults (connection mode, adapter token, Mifare key) live here so
    that a host can switch readers without touching code.
    """

    model_config = SettingsConfigDict(
        env_prefix="NFC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Core Application Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ==========================================================================
    # Tag Connection Settings
    # ==========================================================================
    ndef_mode: bool = Field(
        default=True,
        description="Open NDEF connections on tag arrival; False opens raw block connections",
    )
    raw_connection_name: str = Field(
        default="com.nokia.nfc.nxp.mfstd.MFStandardConnection",
        min_length=1,
        description="Connection name a target must advertise to be opened in raw mode",
    )
    mifare_default_key: str = Field(
        default="FFFFFFFFFFFF",
        description="Hex-encoded 6-byte key used when the caller supplies none",
    )
    worker_join_timeout_seconds: float = Field(default=5.0, ge=0)

    # ==========================================================================
    # Encoding Settings
    # ==========================================================================
    default_language: str = Field(default="en", max_length=63)
    vcalendar_zero_based_month: bool = Field(
        default=False,
        description="Write months as 00-11 like tags produced by early encoders",
    )

    @model_validator(mode="after")
    def validate_mifare_key(self) -> Self:
        try:
            key = bytes.fromhex(self.mifare_default_key)
        except ValueError as exc:
            raise ValueError("mifare_default_key must be hex-encoded") from exc
        if len(key) != 6:
            raise ValueError("mifare_default_key must encode exactly 6 bytes")
        return self

    @property
    def mifare_default_key_bytes(self) -> bytes:
        return bytes.fromhex(self.mifare_default_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()
