"""Typed configuration models for Urchin runtime settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .defaults import DEFAULT_OBJECT_MAX_REPLICAS, DEFAULT_OBJECT_STORAGE_PORT


class LoggingSettings(BaseModel):
    """Stdout logging configuration for the SDK and CLI."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_output: bool = False
    service: str = "urchin"
    environment: str = "dev"


class ClientSettings(BaseModel):
    """Urchin client settings under the ``client`` key."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    endpoint: str = f"http://127.0.0.1:{DEFAULT_OBJECT_STORAGE_PORT}"
    # Query params dropped when the peer derives a task id, separated by ``&``.
    filter: str = ""
    # 0 = write back, 1 = async write back.
    mode: Literal[0, 1] = 0
    max_replicas: int = Field(default=DEFAULT_OBJECT_MAX_REPLICAS, gt=0)
    timeout_seconds: float | None = Field(default=None, gt=0)
    peer_scheme: Literal["http", "https"] = "http"


class UrchinSettings(BaseModel):
    """Root settings resolved from CLI/env/YAML/default sources."""

    model_config = ConfigDict(extra="ignore")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
