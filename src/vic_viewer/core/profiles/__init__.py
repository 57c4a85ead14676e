"""Log profiles: schema, built-in fallback and loading."""

from __future__ import annotations

from .fallback import FALLBACK_LOG_PROFILE
from .loader import ProfileStore, load_log_profile, load_log_profile_async, parse_log_profile
from .models import (
    CoreFields,
    FallbackFields,
    FieldSelector,
    LogProfile,
    ProfileField,
    SingleField,
)

__all__ = [
    "FALLBACK_LOG_PROFILE",
    "CoreFields",
    "FallbackFields",
    "FieldSelector",
    "LogProfile",
    "ProfileField",
    "ProfileStore",
    "SingleField",
    "load_log_profile",
    "load_log_profile_async",
    "parse_log_profile",
]
