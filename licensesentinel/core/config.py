"""Configuration loading: YAML file validated with pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from licensesentinel.exceptions import ConfigError

log = structlog.get_logger("licensesentinel.config")

DEFAULT_CONFIG_FILE = ".licensesentinel.yml"
DEFAULT_CACHE_PATH = ".licenses"


class AppEntrySchema(BaseModel):
    """One application entry as written in the configuration file."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    source_path: str | None = None
    cache_path: str | None = None
    sources: dict[str, bool] | None = None
    allowed: list[str] | None = None
    reviewed: dict[str, list[str]] | None = None
    ignored: dict[str, list[str]] | None = None

    @field_validator("allowed", mode="before")
    @classmethod
    def _normalize_licenses(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [s.strip().lower() if isinstance(s, str) else s for s in v]
        return v


class ConfigFileSchema(AppEntrySchema):
    """Top-level configuration file; its values are defaults for every app."""

    apps: list[AppEntrySchema] = Field(default_factory=list)


class AppConfig(BaseModel):
    """Fully resolved configuration for one application."""

    name: str
    source_path: Path
    cache_path: Path
    sources: dict[str, bool] = Field(default_factory=dict)
    allowed: list[str] = Field(default_factory=list)
    reviewed: dict[str, list[str]] = Field(default_factory=dict)
    ignored: dict[str, list[str]] = Field(default_factory=dict)

    def source_enabled(self, source_type: str) -> bool:
        """Sources are enabled unless explicitly switched off."""
        return self.sources.get(source_type, True)


class Config(BaseModel):
    apps: list[AppConfig]

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> Config:
        """Build a Config from parsed file contents.

        Relative paths are resolved against *base_dir*.
        """
        try:
            raw = ConfigFileSchema.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration: {exc}") from exc

        entries = raw.apps or [AppEntrySchema()]
        multi_app = len(entries) > 1
        top_cache = base_dir / (raw.cache_path or DEFAULT_CACHE_PATH)

        apps: list[AppConfig] = []
        for entry in entries:
            source_path = (base_dir / (entry.source_path or raw.source_path or ".")).resolve()
            name = entry.name or (raw.name if not multi_app else None) or source_path.name

            if entry.cache_path:
                cache_path = base_dir / entry.cache_path
            elif multi_app:
                cache_path = top_cache / name
            else:
                cache_path = top_cache

            apps.append(
                AppConfig(
                    name=name,
                    source_path=source_path,
                    cache_path=cache_path.resolve(),
                    sources=_pick(entry.sources, raw.sources, {}),
                    allowed=_pick(entry.allowed, raw.allowed, []),
                    reviewed=_pick(entry.reviewed, raw.reviewed, {}),
                    ignored=_pick(entry.ignored, raw.ignored, {}),
                )
            )

        names = [app.name for app in apps]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigError(f"duplicate app names: {', '.join(duplicates)}")
        return cls(apps=apps)


def _pick(value: Any, default: Any, fallback: Any) -> Any:
    if value is not None:
        return value
    if default is not None:
        return default
    return fallback


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> Config:
    """Load and validate the YAML configuration file at *path*."""
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"configuration file not found: {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    config = Config.from_dict(data, config_path.resolve().parent)
    log.debug("config.loaded", path=str(config_path), apps=[a.name for a in config.apps])
    return config
