"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheConfig:
    default_ttl_seconds: int = 60 * 60
    check_period_seconds: int = 60
    lock_timeout_seconds: float = 10.0
    max_pending: int = 100_000
    timeline_ttl_seconds: int = 2 * 60
    vaults_ttl_seconds: int = 30


@dataclass(frozen=True)
class FanOutConfig:
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class PaginationConfig:
    page_size: int = 1000
    fetch_at_most: int = 100_000


@dataclass(frozen=True)
class SubgraphConfig:
    name: str = ""
    tag: str = "latest"
    url: str = ""


@dataclass(frozen=True)
class ChainConfig:
    subgraphs: tuple[SubgraphConfig, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    cache: CacheConfig = field(default_factory=CacheConfig)
    fan_out: FanOutConfig = field(default_factory=FanOutConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_cache(raw: dict[str, Any]) -> CacheConfig:
    return CacheConfig(
        default_ttl_seconds=int(raw.get("default_ttl_seconds", 60 * 60)),
        check_period_seconds=int(raw.get("check_period_seconds", 60)),
        lock_timeout_seconds=float(raw.get("lock_timeout_seconds", 10.0)),
        max_pending=int(raw.get("max_pending", 100_000)),
        timeline_ttl_seconds=int(raw.get("timeline_ttl_seconds", 2 * 60)),
        vaults_ttl_seconds=int(raw.get("vaults_ttl_seconds", 30)),
    )


def _build_fan_out(raw: dict[str, Any]) -> FanOutConfig:
    return FanOutConfig(timeout_seconds=float(raw.get("timeout_seconds", 30.0)))


def _build_pagination(raw: dict[str, Any]) -> PaginationConfig:
    return PaginationConfig(
        page_size=int(raw.get("page_size", 1000)),
        fetch_at_most=int(raw.get("fetch_at_most", 100_000)),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        subgraphs = tuple(
            SubgraphConfig(
                name=s.get("name", ""),
                tag=s.get("tag", "latest"),
                url=s.get("url", ""),
            )
            for s in (cfg or {}).get("subgraphs", [])
        )
        chains[name] = ChainConfig(subgraphs=subgraphs)
    return chains


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        cache=_build_cache(raw.get("cache", {})),
        fan_out=_build_fan_out(raw.get("fan_out", {})),
        pagination=_build_pagination(raw.get("pagination", {})),
        chains=_build_chains(raw.get("chains", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chains:
        raise ValueError("At least one chain must be configured")

    for chain, chain_cfg in cfg.chains.items():
        if not chain_cfg.subgraphs:
            raise ValueError(f"Chain '{chain}' has no subgraphs")
        for subgraph in chain_cfg.subgraphs:
            if not subgraph.url:
                raise ValueError(
                    f"Subgraph '{subgraph.name}' on chain '{chain}' has no url"
                )

    if cfg.fan_out.timeout_seconds <= 0:
        raise ValueError("fan_out.timeout_seconds must be positive")
    if cfg.cache.lock_timeout_seconds <= 0:
        raise ValueError("cache.lock_timeout_seconds must be positive")
    if cfg.cache.max_pending <= 0:
        raise ValueError("cache.max_pending must be positive")
    if cfg.pagination.page_size <= 0 or cfg.pagination.fetch_at_most <= 0:
        raise ValueError("pagination.page_size and fetch_at_most must be positive")
