"""
Configuration - Environment-driven settings for the CLI and the API.

Environment:
    PROTOCOL_ENGINE_ENV          development | production (default development; production hides API docs)
    PROTOCOL_ENGINE_DATA_DIR     Directory for saved progress (default ~/.protocol_engine)
    PROTOCOL_ENGINE_TABLE_PATH   Optional JSON interaction table override
    PROTOCOL_ENGINE_TICK_MS      Simulation step in milliseconds (default 50)
    PROTOCOL_ENGINE_LOG_LEVEL    Logging level name (default INFO)
    ALLOWED_ORIGINS              Comma-separated CORS origins (default *)
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field

from .balance import InteractionTable, default_table, load_table, validate_table

DEFAULT_TICK_MS = 50
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineConfig:
    env: str = "development"
    data_dir: str | None = None
    table_path: str | None = None
    tick_ms: int = DEFAULT_TICK_MS
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> EngineConfig:
        tick_ms = os.getenv("PROTOCOL_ENGINE_TICK_MS", str(DEFAULT_TICK_MS))
        try:
            tick = int(tick_ms)
        except ValueError:
            raise ValueError(f"PROTOCOL_ENGINE_TICK_MS must be an integer, got {tick_ms!r}")
        if tick <= 0:
            raise ValueError("PROTOCOL_ENGINE_TICK_MS must be positive")

        return cls(
            env=os.getenv("PROTOCOL_ENGINE_ENV", "development"),
            data_dir=os.getenv("PROTOCOL_ENGINE_DATA_DIR", None),
            table_path=os.getenv("PROTOCOL_ENGINE_TABLE_PATH", None),
            tick_ms=tick,
            log_level=os.getenv("PROTOCOL_ENGINE_LOG_LEVEL", "INFO").upper(),
            allowed_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def load_table(self) -> InteractionTable:
        """The configured interaction table, validated. Defaults when no path is set."""
        if not self.table_path:
            return default_table()
        table = load_table(self.table_path)
        validate_table(table, raise_on_error=True)
        return table


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
