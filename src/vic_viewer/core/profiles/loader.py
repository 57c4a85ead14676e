"""Loading log profiles from YAML and holding the active one."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from pydantic import ValidationError

from ..errors import ProfileLoadError
from .fallback import FALLBACK_LOG_PROFILE
from .models import LogProfile

logger = logging.getLogger(__name__)


def parse_log_profile(
    text: str,
    *,
    source: str,
    expected_profile_id: str | None = None,
) -> LogProfile:
    """Validate YAML text as a LogProfile."""
    try:
        raw: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ProfileLoadError(f"Invalid log profile at {source}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ProfileLoadError(f"Invalid log profile at {source}: expected a mapping")

    try:
        profile = LogProfile.model_validate(raw)
    except ValidationError as exc:
        raise ProfileLoadError(f"Invalid log profile at {source}: {exc}") from exc

    if expected_profile_id and profile.id != expected_profile_id:
        raise ProfileLoadError(
            f"Invalid log profile at {source}: "
            f"expected id '{expected_profile_id}' but found '{profile.id}'"
        )
    return profile


def load_log_profile(path: str | Path, *, expected_profile_id: str | None = None) -> LogProfile:
    """Read and validate a YAML profile file."""
    p = Path(path)
    if not p.is_file():
        raise ProfileLoadError(f"Log profile not found: {p}")
    text = p.read_text(encoding="utf-8")
    return parse_log_profile(text, source=str(p), expected_profile_id=expected_profile_id)


async def load_log_profile_async(
    path: str | Path, *, expected_profile_id: str | None = None
) -> LogProfile:
    """Async variant of load_log_profile for use inside the server loop."""
    p = Path(path)
    if not p.is_file():
        raise ProfileLoadError(f"Log profile not found: {p}")
    async with aiofiles.open(p, encoding="utf-8") as f:
        text = await f.read()
    return parse_log_profile(text, source=str(p), expected_profile_id=expected_profile_id)


class ProfileStore:
    """Holds the active profile.

    Readers take one snapshot per request via get_active_profile(); a reload
    swaps the whole profile object, never mutates it.
    """

    def __init__(
        self,
        profile: LogProfile = FALLBACK_LOG_PROFILE,
        *,
        path: str | Path | None = None,
        expected_profile_id: str | None = None,
    ) -> None:
        self._profile = profile
        self._path = Path(path) if path is not None else None
        self._expected_profile_id = expected_profile_id

    @classmethod
    def from_path(
        cls, path: str | Path | None, *, expected_profile_id: str | None = None
    ) -> ProfileStore:
        """Load from path, or use the fallback profile when no path is configured."""
        if path is None:
            logger.info("No log profile configured, using '%s'", FALLBACK_LOG_PROFILE.id)
            return cls(FALLBACK_LOG_PROFILE)
        profile = load_log_profile(path, expected_profile_id=expected_profile_id)
        logger.info("Loaded log profile '%s' v%s from %s", profile.id, profile.version, path)
        return cls(profile, path=path, expected_profile_id=expected_profile_id)

    @property
    def path(self) -> Path | None:
        return self._path

    def get_active_profile(self) -> LogProfile:
        return self._profile

    async def reload(self) -> LogProfile:
        """Re-read the profile file; without a file the active profile is kept."""
        if self._path is None:
            return self._profile
        profile = await load_log_profile_async(
            self._path, expected_profile_id=self._expected_profile_id
        )
        if (profile.id, profile.version) != (self._profile.id, self._profile.version):
            logger.info(
                "Active log profile changed: %s v%s -> %s v%s",
                self._profile.id,
                self._profile.version,
                profile.id,
                profile.version,
            )
        self._profile = profile
        return profile
