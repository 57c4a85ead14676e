"""Environment-driven configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from .cursor import CursorTransportMode
from .sources.synthetic import SyntheticProfile

DataMode = Literal["vicstack", "synthetic"]

DEFAULT_VICTORIA_LOGS_URL = "http://localhost:9428"
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_SYNTHETIC_SEED = "vic-viewer-synthetic-seed"

_TRUE_VALUES = {"1", "true", "yes"}
_BOOL_VALUES = _TRUE_VALUES | {"0", "false", "no"}


@dataclass(frozen=True, slots=True)
class AppConfig:
    victoria_logs_url: str = DEFAULT_VICTORIA_LOGS_URL
    vicstack_timeout_ms: int = DEFAULT_TIMEOUT_MS
    logs_data_mode: DataMode = "vicstack"
    synthetic_profile: SyntheticProfile = SyntheticProfile.STEADY
    synthetic_seed: str = DEFAULT_SYNTHETIC_SEED
    cursor_mode: CursorTransportMode = CursorTransportMode.ENCODED
    log_profile_path: str | None = None
    log_profile_id: str | None = None
    log_level: str = "INFO"


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def _flag(env: Mapping[str, str], name: str) -> bool:
    raw = (env.get(name) or "0").strip().lower()
    if raw not in _BOOL_VALUES:
        raise ValueError(f"{name} must be one of: {', '.join(sorted(_BOOL_VALUES))}")
    return raw in _TRUE_VALUES


def _url(env: Mapping[str, str], name: str, default: str) -> str:
    value = (env.get(name) or default).strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"{name} must be an http(s) URL")
    return value


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    """Build AppConfig from environment variables; invalid values raise ValueError."""
    if env is None:
        env = os.environ

    mode = (env.get("LOGS_DATA_MODE") or "vicstack").strip().lower()
    if mode not in ("vicstack", "synthetic"):
        raise ValueError("LOGS_DATA_MODE must be 'vicstack' or 'synthetic'")

    profile_name = (env.get("SYNTHETIC_LOGS_PROFILE") or "steady").strip().lower()
    try:
        synthetic_profile = SyntheticProfile(profile_name)
    except ValueError as exc:
        valid = ", ".join(p.value for p in SyntheticProfile)
        raise ValueError(f"SYNTHETIC_LOGS_PROFILE must be one of: {valid}") from exc

    return AppConfig(
        victoria_logs_url=_url(env, "VICTORIA_LOGS_URL", DEFAULT_VICTORIA_LOGS_URL),
        vicstack_timeout_ms=_positive_int(env, "VICSTACK_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        logs_data_mode=mode,  # type: ignore[arg-type]
        synthetic_profile=synthetic_profile,
        synthetic_seed=env.get("SYNTHETIC_LOGS_SEED") or DEFAULT_SYNTHETIC_SEED,
        cursor_mode=(
            CursorTransportMode.JSON
            if _flag(env, "LOGS_CURSOR_DEBUG_RAW")
            else CursorTransportMode.ENCODED
        ),
        log_profile_path=env.get("LOG_PROFILE_PATH") or None,
        log_profile_id=env.get("LOG_PROFILE_ID") or None,
        log_level=(env.get("VIC_VIEWER_LOG_LEVEL") or "INFO").upper(),
    )
