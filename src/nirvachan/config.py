# Config Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Variables de entorno del feed en vivo
#   2) Rutas de referencia y API
#
# EN: Quick index
#   1) Live feed environment variables
#   2) Reference paths and API

"""Configuración validada de Nirvachan.

Validated Nirvachan configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AnyUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_PATH = Path(".env")
_ENV_LOCAL_PATH = Path(".env.local")
# Cookies de sesión del feed viven en .env / Feed session cookies live in .env.
load_dotenv(_ENV_PATH, override=False)
load_dotenv(_ENV_LOCAL_PATH, override=False)

DEFAULT_REFERER = "https://result.election.gov.np/"


class NirvachanSettings(BaseSettings):
    """Variables de entorno y archivo .env para Nirvachan.

    ``ECN_API_URL`` vacío deshabilita el polling sin error.

    English:
        Environment variables and .env file for Nirvachan. An empty
        ``ECN_API_URL`` disables polling without error.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ECN_API_URL: Optional[str] = None
    ECN_REFERER: str = DEFAULT_REFERER
    ECN_COOKIE: Optional[str] = None
    POLL_INTERVAL_SECONDS: float = Field(default=10.0, ge=1.0)
    FEED_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None
    REFERENCE_PATH: Path = Path("data") / "candidates.json"
    SYMBOLS_PATH: Path = Path("data") / "partySymbols.json"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=5175, ge=1, le=65535)
    CORS_ORIGINS: str = "*"
    API_RATE_LIMIT: int = Field(default=120, ge=1)

    @field_validator("ECN_API_URL", "ECN_COOKIE", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("ECN_API_URL")
    @classmethod
    def _validate_url(cls, value: Optional[str]) -> Optional[str]:
        """Validate URLs without changing the stored type."""
        if value is not None:
            TypeAdapter(AnyUrl).validate_python(value)
        return value

    @property
    def live_enabled(self) -> bool:
        return self.ECN_API_URL is not None

    def cors_origins(self) -> List[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_config(**overrides: object) -> NirvachanSettings:
    """/** Carga y valida configuración, fallando con detalle. / Load and validate configuration, failing with details. **/"""
    try:
        return NirvachanSettings(**overrides)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
