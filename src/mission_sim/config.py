"""Process settings read from ``MISSION_SIM_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from mission_sim.rules.catalog import DEFAULT_CATALOG_PATH

NARRATIVE_BACKENDS = ("template", "ollama")
ENV_PREFIX = "MISSION_SIM_"


class ConfigError(ValueError):
    """Invalid configuration value."""


@dataclass(frozen=True)
class Settings:
    catalog_path: Path = DEFAULT_CATALOG_PATH
    narrative_backend: str = "template"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    narrative_timeout: float = 8.0
    rng_seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        def read(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        backend = (read("NARRATIVE_BACKEND") or cls.narrative_backend).lower()
        if backend not in NARRATIVE_BACKENDS:
            raise ConfigError(
                f"{ENV_PREFIX}NARRATIVE_BACKEND must be one of {NARRATIVE_BACKENDS}, got {backend!r}"
            )

        timeout = cls.narrative_timeout
        raw_timeout = read("NARRATIVE_TIMEOUT")
        if raw_timeout is not None:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigError(f"{ENV_PREFIX}NARRATIVE_TIMEOUT must be a number") from exc
            if timeout <= 0:
                raise ConfigError(f"{ENV_PREFIX}NARRATIVE_TIMEOUT must be > 0")

        seed = None
        raw_seed = read("RNG_SEED")
        if raw_seed is not None:
            try:
                seed = int(raw_seed)
            except ValueError as exc:
                raise ConfigError(f"{ENV_PREFIX}RNG_SEED must be an integer") from exc

        log_level = (read("LOG_LEVEL") or cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"{ENV_PREFIX}LOG_LEVEL: unknown level {log_level!r}")

        catalog_path = read("CATALOG_PATH")
        return cls(
            catalog_path=Path(catalog_path) if catalog_path else DEFAULT_CATALOG_PATH,
            narrative_backend=backend,
            ollama_url=read("OLLAMA_URL") or cls.ollama_url,
            ollama_model=read("OLLAMA_MODEL") or cls.ollama_model,
            narrative_timeout=timeout,
            rng_seed=seed,
            log_level=log_level,
        )
