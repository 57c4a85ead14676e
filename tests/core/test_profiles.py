from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from vic_viewer.core.errors import ProfileLoadError
from vic_viewer.core.profiles import (
    FALLBACK_LOG_PROFILE,
    FallbackFields,
    ProfileField,
    ProfileStore,
    SingleField,
    load_log_profile,
    load_log_profile_async,
    parse_log_profile,
)


def test_fallback_profile_shape() -> None:
    profile = FALLBACK_LOG_PROFILE

    assert profile.identity == {"id": "fallback", "version": 1}
    assert profile.core_fields.time == SingleField(field="_time")
    assert profile.core_fields.severity == FallbackFields(fields=("severity", "SeverityText"))
    assert profile.tie_breaker.fields[0] == "_stream_id"
    assert profile.log_details.field_sets[-1].fields[0].type == "RemainingFields"


def test_load_log_profile(tmp_path: Path, write_profile) -> None:
    path = write_profile(tmp_path / "profile.yaml")

    profile = load_log_profile(path, expected_profile_id="team-default")

    assert profile.id == "team-default"
    assert profile.version == 2
    assert profile.core_fields.time == SingleField(field="ts")
    assert profile.core_fields.message == FallbackFields(fields=("msg", "_msg"))
    assert profile.core_fields.trace_id is None
    assert profile.log_table.columns[1].selector == FallbackFields(fields=("msg", "_msg"))


def test_load_log_profile_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProfileLoadError):
        load_log_profile(tmp_path / "nope.yaml")


def test_profile_id_mismatch(tmp_path: Path, write_profile) -> None:
    path = write_profile(tmp_path / "profile.yaml")
    with pytest.raises(ProfileLoadError, match="expected id 'other'"):
        load_log_profile(path, expected_profile_id="other")


@pytest.mark.parametrize(
    "text",
    [
        "id: [unclosed",
        "- just\n- a list\n",
        "id: x\nname: x\nversion: 0\n",
    ],
)
def test_parse_log_profile_rejects_invalid(text: str) -> None:
    with pytest.raises(ProfileLoadError):
        parse_log_profile(text, source="inline")


def test_selector_with_field_and_fields_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ProfileField.model_validate({"id": "x", "field": "a", "fields": ["b"]})


def test_selector_without_source_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ProfileField.model_validate({"id": "x", "title": "X"})


def test_special_field_cannot_name_fields() -> None:
    with pytest.raises(ValidationError):
        ProfileField.model_validate({"type": "RemainingFields", "field": "a"})
    assert ProfileField.model_validate({"type": "StructuredLoggingFields"}).selector is None


def test_core_selector_rejects_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        SingleField.model_validate({"field": "a", "fields": ["b"]})
    with pytest.raises(ValidationError):
        FallbackFields.model_validate({"fields": []})


@pytest.mark.asyncio
async def test_load_log_profile_async(tmp_path: Path, write_profile) -> None:
    path = write_profile(tmp_path / "profile.yaml")
    profile = await load_log_profile_async(path)
    assert profile.id == "team-default"


def test_store_without_path_uses_fallback() -> None:
    store = ProfileStore.from_path(None)
    assert store.get_active_profile() is FALLBACK_LOG_PROFILE
    assert store.path is None


@pytest.mark.asyncio
async def test_store_reload_swaps_profile(tmp_path: Path, write_profile) -> None:
    path = write_profile(tmp_path / "profile.yaml")
    store = ProfileStore.from_path(path)
    before = store.get_active_profile()

    path.write_text(path.read_text(encoding="utf-8").replace("version: 2", "version: 3"), encoding="utf-8")
    after = await store.reload()

    assert before.version == 2
    assert after.version == 3
    assert store.get_active_profile() is after


@pytest.mark.asyncio
async def test_store_reload_keeps_profile_on_error(tmp_path: Path, write_profile) -> None:
    path = write_profile(tmp_path / "profile.yaml")
    store = ProfileStore.from_path(path)
    before = store.get_active_profile()

    path.write_text("id: [broken", encoding="utf-8")
    with pytest.raises(ProfileLoadError):
        await store.reload()

    assert store.get_active_profile() is before


@pytest.mark.asyncio
async def test_store_reload_without_path_is_noop() -> None:
    store = ProfileStore()
    assert await store.reload() is FALLBACK_LOG_PROFILE
