from __future__ import annotations

import pathlib
from typing import Any, Optional

import yaml

from .utils import env_flag, parse_hhmm, read_env

HERE = pathlib.Path(__file__).resolve().parent
DEFAULT_CONFIG = HERE / "config.yaml"


def load_config(path: Optional[str | pathlib.Path] = None) -> dict:
    cfg_path = pathlib.Path(path) if path else DEFAULT_CONFIG
    cfg: dict[str, Any] = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    if env_flag("CALSYNC_DEBUG"):
        cfg["debug"] = True
    timeout = read_env("CALSYNC_TIMEOUT_MS")
    if timeout:
        cfg["timeout_ms"] = int(timeout)
    registry = read_env("CALSYNC_REGISTRY")
    if registry:
        cfg["registry"] = registry

    reg = pathlib.Path(cfg.get("registry", "feeds.yaml"))
    if not reg.is_absolute():
        reg = cfg_path.parent / reg
    cfg["registry"] = str(reg)
    return cfg


def site_config(config: dict, strategy: str) -> dict:
    return (config.get("sites", {}) or {}).get(strategy, {}) or {}


def default_kickoff(config: dict) -> tuple[int, int]:
    return parse_hhmm(str(config.get("default_kickoff", "19:00")), (19, 0))
