"""Record sources: the real upstream and a deterministic synthetic one."""

from __future__ import annotations

from .base import RecordSource
from .synthetic import SyntheticProfile, SyntheticRecordSource
from .victoria_logs import VictoriaLogsSource, parse_query_response

__all__ = [
    "RecordSource",
    "SyntheticProfile",
    "SyntheticRecordSource",
    "VictoriaLogsSource",
    "parse_query_response",
]
