from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from plansync.core.errors import ConfigError


LOG_LEVELS: tuple[str, ...] = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SyncConfig:
    # Days an out-of-sync alert stays hidden after dismissal or a sync.
    dismiss_days: float = 7
    state_file: str = ".plansync/state.yaml"
    log_level: str = "WARNING"
    model: str = "gpt-4.1-mini"


DEFAULT_CONFIG = SyncConfig()

# env var -> config field
ENV_OVERRIDES: dict[str, str] = {
    "PLANSYNC_DISMISS_DAYS": "dismiss_days",
    "PLANSYNC_STATE_FILE": "state_file",
    "PLANSYNC_LOG_LEVEL": "log_level",
    "PLANSYNC_MODEL": "model",
}


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load config overrides from a YAML file.

    Format:
      dismiss_days: 7
      state_file: .plansync/state.yaml
      log_level: WARNING
      model: gpt-4.1-mini
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("config file must be a mapping of option -> value")

    known = {f.name for f in fields(SyncConfig)}
    for k in raw:
        if k not in known:
            raise ConfigError(f"unknown config option '{k}' (choose from: {', '.join(sorted(known))})")
    return dict(raw)


def merged_config(overrides: dict[str, Any] | None = None, env: Optional[dict[str, str]] = None) -> SyncConfig:
    """Return DEFAULT_CONFIG merged with file overrides, then environment overrides."""
    values: dict[str, Any] = dict(overrides or {})

    environ = os.environ if env is None else env
    for var, name in ENV_OVERRIDES.items():
        v = (environ.get(var, "") or "").strip()
        if v:
            values[name] = v

    return replace(DEFAULT_CONFIG, **_coerce(values))


def load_config(config_file: str | None = None, env: Optional[dict[str, str]] = None) -> SyncConfig:
    if not config_file:
        return merged_config(env=env)
    return merged_config(load_config_file(config_file), env=env)


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in values.items():
        if k == "dismiss_days":
            try:
                days = float(v)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"dismiss_days must be a number, got {v!r}") from e
            if isinstance(v, bool) or days < 0:
                raise ConfigError(f"dismiss_days must be a non-negative number, got {v!r}")
            out[k] = days
        elif k == "log_level":
            level = str(v).strip().upper()
            if level not in LOG_LEVELS:
                raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
            out[k] = level
        else:
            if not isinstance(v, str) or not v.strip():
                raise ConfigError(f"{k} must be a non-empty string")
            out[k] = v.strip()
    return out
