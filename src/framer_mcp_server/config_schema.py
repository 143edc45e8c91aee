"""Unified configuration schema for framer_mcp_server.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Framer connection, reconciliation tuning, and logging.

Usage:
    from framer_mcp_server.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class FramerConfig(BaseModel):
    """Framer project connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(
        default=None, description="Framer project URL or ID"
    )
    api_key: str | None = Field(
        default=None, description="Framer Server API key"
    )
    api_endpoint: str | None = Field(
        default=None, description="JSON-RPC endpoint override"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent requests to the Framer API (1-100)",
    )

    model_config = {"frozen": True}


class ReconcileConfig(BaseModel):
    """Tuning for post-write item resolution.

    Attributes:
        max_attempts: Resolution attempts after an under-resolved write.
        backoff_ms: Linear backoff step; attempt N waits ``backoff_ms * (N - 1)``.
    """

    max_attempts: int = Field(default=4, ge=1, le=10)
    backoff_ms: int = Field(default=350, ge=0, le=10000)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    framer: FramerConfig = Field(default_factory=FramerConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged YAML dict.

    Missing sections get defaults and unknown top-level keys are ignored.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the ``framer`` and ``reconcile`` sections for ``load_config()``.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    merged = unified.framer.model_dump()
    merged.update(unified.reconcile.model_dump())
    return {k: v for k, v in merged.items() if v is not None}
