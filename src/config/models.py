"""Config models and loader.

This module defines Pydantic models for file- and environment-based
configuration. JSON parsing prefers `orjson` when available, falling back to
the standard library's `json` module.
"""

from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProphetSourceConfig(BaseModel):
    """Connection settings for one Prophet server.

    Attributes
    ----------
    endpoint: str
        Base URL of the server (e.g., "http://webeye.example.com").
    path: str
        Path of the Prophet servlet relative to ``endpoint``.
    timeout_seconds: float
        HTTP request timeout in seconds for a whole round trip.
    headers: Dict[str, str]
        Extra HTTP headers sent with every request.
    """

    endpoint: str = Field(..., description="Base URL of the Prophet server")
    path: str = Field("/prophet", description="Prophet servlet path")
    timeout_seconds: float = Field(140, gt=0)
    headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Top-level application configuration.

    Attributes
    ----------
    sources: Dict[str, ProphetSourceConfig]
        Mapping from logical `source_id` to connection settings.
    default_source: Optional[str]
        Source used when the caller does not name one; defaults to the first
        configured source.
    """

    sources: Dict[str, ProphetSourceConfig] = Field(default_factory=dict)
    default_source: Optional[str] = None

    @model_validator(mode="after")
    def _check_default_source(self) -> "AppConfig":
        if self.default_source is None and self.sources:
            self.default_source = next(iter(self.sources))
        if self.default_source is not None and self.default_source not in self.sources:
            raise ValueError(
                f"default_source {self.default_source!r} is not a configured source"
            )
        return self

    @staticmethod
    def load(path: Path) -> "AppConfig":
        """Load application config from a JSON file."""
        raw = path.read_bytes()
        if _loads_orjson is not None:
            data = _loads_orjson(raw)
        else:
            data = _json.loads(raw.decode("utf-8"))
        return AppConfig.model_validate(data)


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    config_path: Optional[Path]
        JSON config file used when ``--config`` is not given.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DATAEYE_")

    log_level: str = Field("INFO")
    config_path: Optional[Path] = None
