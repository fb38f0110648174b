"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lotto_ledger.common.errors import ConfigError
from lotto_ledger.common.fs import read_yaml
from lotto_ledger.common.schema import validate_sources_config, validate_sync_config


@dataclass(frozen=True)
class ConfigBundle:
    sources: list[dict]
    sync: dict


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def overlay_for(name: str) -> Path | None:
        return (overlay_config_dir / name) if overlay_config_dir is not None else None

    sources_cfg = validate_sources_config(
        _load_yaml_with_overlay(config_dir / "sources.yml", overlay_for("sources.yml")),
        allow_unknown=allow_unknown,
    )
    sync_cfg = validate_sync_config(
        _load_yaml_with_overlay(config_dir / "sync.yml", overlay_for("sync.yml")),
        allow_unknown=allow_unknown,
    )
    return ConfigBundle(sources=list(sources_cfg["sources"]), sync=sync_cfg)


def enabled_sources(bundle: ConfigBundle) -> list[dict]:
    return [source for source in bundle.sources if source.get("enabled", True)]
