from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    cache_ttl_seconds: int
    cache_max_items: int

    debt_max_months: int
    redistribution_epsilon: float
    combined_rate_weight: float
    collection_probability: float


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so they never mask config.yaml.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")
    cache_ttl_seconds = int(_env_or_cfg("CACHE_TTL_SECONDS", "app.cache_ttl_seconds", 300))
    cache_max_items = int(_env_or_cfg("CACHE_MAX_ITEMS", "app.cache_max_items", 256))

    debt_max_months = int(_env_or_cfg("DEBT_MAX_MONTHS", "engine.debt_max_months", 600))
    redistribution_epsilon = float(_env_or_cfg("REDISTRIBUTION_EPSILON", "engine.redistribution_epsilon", 0.01))
    combined_rate_weight = float(_env_or_cfg("COMBINED_RATE_WEIGHT", "engine.combined_rate_weight", 0.5))
    collection_probability = float(_env_or_cfg("COLLECTION_PROBABILITY", "engine.collection_probability", 0.8))

    if isinstance(log_level, str):
        log_level = log_level.strip().upper()

    # Keep the blend weight inside [0, 1]; a bad override should not flip the ranking.
    combined_rate_weight = min(1.0, max(0.0, combined_rate_weight))

    return Settings(
        env=env,
        log_level=log_level,
        cache_ttl_seconds=cache_ttl_seconds,
        cache_max_items=cache_max_items,
        debt_max_months=debt_max_months,
        redistribution_epsilon=redistribution_epsilon,
        combined_rate_weight=combined_rate_weight,
        collection_probability=collection_probability,
    )


SETTINGS = load_settings()
