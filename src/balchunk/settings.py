"""
Centralized settings for the chunking pipeline.

Values come from ``BALCHUNK_*`` environment variables, optionally overridden
by a grouped TOML file (``balchunk_settings.toml`` or ``$BALCHUNK_CONFIG_PATH``).
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    import tomli as tomllib  # type: ignore[no-redef]

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Project-wide settings loaded from env or a TOML file."""

    model_config = SettingsConfigDict(
        env_prefix="BALCHUNK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    max_chunk_length: PositiveInt = 2000
    workers: PositiveInt = 1
    dedupe: bool = True
    source_suffixes: List[str] = [".bal"]
    ignore_patterns: List[str] = []
    output_dir: Path = Path("chunks")
    log_level: str = "INFO"


_CONFIG_ENV_VAR = "BALCHUNK_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("balchunk_settings.toml")


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the first TOML candidate that exists."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as handle:
                return tomllib.load(handle)
    return {}


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    chunking = raw.get("chunking", {})
    if "max_chunk_length" in chunking:
        data["max_chunk_length"] = int(chunking["max_chunk_length"])
    if "workers" in chunking:
        data["workers"] = int(chunking["workers"])
    if "dedupe" in chunking:
        data["dedupe"] = bool(chunking["dedupe"])

    sources = raw.get("sources", {})
    if "suffixes" in sources:
        data["source_suffixes"] = _as_list(sources["suffixes"])
    if "ignore" in sources:
        data["ignore_patterns"] = _as_list(sources["ignore"])

    output = raw.get("output", {})
    if "directory" in output:
        data["output_dir"] = output["directory"]

    logging_section = raw.get("logging", {})
    if "level" in logging_section:
        data["log_level"] = str(logging_section["level"])

    return data


def load_settings() -> AppSettings:
    return AppSettings(**_flatten_config(_load_toml_config()))


settings = load_settings()
