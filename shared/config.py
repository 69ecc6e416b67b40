# shared/config.py
from __future__ import annotations
import os, json, redis

COMPONENT = "vault_insights"

# Built-in defaults; Truth component env block and shell env override these
DEFAULTS: dict = {
    "VAULT_API_BASE_URL": "http://127.0.0.1:8080",
    "VAULT_API_TIMEOUT_S": 10.0,
    "ACTIVITY_PAGE_LIMIT": 100,
    "INSIGHTS_STALE_S": 30.0,
    "INSIGHTS_REFRESH_S": 60.0,
    "DATA_SOURCE": "http",
    "LOG_LEVEL": "INFO",
}

_NUMERIC = {
    "VAULT_API_TIMEOUT_S": float,
    "ACTIVITY_PAGE_LIMIT": int,
    "INSIGHTS_STALE_S": float,
    "INSIGHTS_REFRESH_S": float,
}

def _env(k, d=None):
    v = os.getenv(k)
    return v if v and v.strip() else d

def _r():
    url = _env("TRUTH_REDIS_URL", "redis://127.0.0.1:6379")
    return redis.Redis.from_url(url, decode_responses=True)

def load_truth(r=None) -> dict:
    r = r or _r()
    raw = r.get("truth:doc")
    return json.loads(raw) if raw else {}

def _coerce(cfg: dict) -> dict:
    for key, kind in _NUMERIC.items():
        try:
            cfg[key] = kind(cfg[key])
        except (TypeError, ValueError):
            cfg[key] = DEFAULTS[key]
    cfg["DATA_SOURCE"] = str(cfg.get("DATA_SOURCE") or "http").lower()
    return cfg

def resolve_insights_config(r=None, use_truth: bool = True, logger=None) -> dict:
    """
    Returns the merged vault_insights config:
      defaults <- truth components.vault_insights.env <- shell env

    An unreachable or empty Truth store falls back to defaults.
    """
    cfg = dict(DEFAULTS)
    cfg["service_id"] = _env("SERVICE_ID", COMPONENT)
    cfg["truth_loaded"] = False

    if use_truth:
        try:
            T = load_truth(r)
            comp = (T.get("components") or {}).get(cfg["service_id"]) \
                or (T.get("components") or {}).get(COMPONENT) or {}
            for key, value in (comp.get("env") or {}).items():
                cfg[key] = value
            cfg["truth_loaded"] = bool(comp)
        except (redis.exceptions.RedisError, json.JSONDecodeError) as e:
            if logger:
                logger.warn(f"truth unavailable, using defaults: {e}")

    for key in DEFAULTS:
        override = _env(key)
        if override is not None:
            cfg[key] = override

    return _coerce(cfg)
