"""Tests for the settings API functions.

Tests cover:
- Resolving with caller and configured dimensions
- Error codes for not found, ambiguous, invalid and store failures
- Writing one exact row
"""

from unittest.mock import MagicMock

import pytest

from smartconfig.api.settings import get_setting, put_setting
from smartconfig.config import SettingsManager
from smartconfig.resolution import CandidateRecord
from smartconfig.stores import MemoryStore


@pytest.fixture(autouse=True)
def reset_settings():
    SettingsManager.reset_instance()
    yield
    SettingsManager.reset_instance()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_success(memory_store):
    result = await get_setting("Timeout", {"Environment": "XYZ", "Version": "2.4.3"}, store=memory_store)

    assert result["status"] == "success"
    assert result["value"] == "v2"
    assert result["matched"] == {"Name": "Timeout", "Environment": "XYZ", "Version": "2.4.0"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_uses_configured_dimensions(memory_store):
    settings = SettingsManager.get_instance()
    settings.resolution.environment = "JKL"
    settings.resolution.version = "5.0.0"

    result = await get_setting("Timeout", store=memory_store)

    assert result["value"] == "v4"
    assert result["dimensions"] == {"Environment": "JKL", "Version": "5.0.0"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_caller_dimensions_override_configured(memory_store):
    settings = SettingsManager.get_instance()
    settings.resolution.environment = "JKL"
    settings.resolution.version = "5.0.0"

    result = await get_setting("Timeout", {"Environment": "QRS"}, store=memory_store)

    assert result["value"] == "v3"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_not_found(memory_store):
    result = await get_setting("Timeout", {"Environment": "ABC", "Version": "1.1.3"}, store=memory_store)

    assert result["status"] == "error"
    assert result["error"] == "not_found"
    assert "Timeout" in result["message"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_ambiguous():
    store = MemoryStore([
        CandidateRecord("Timeout", "a", {"Environment": "PROD", "Region": "EU"}),
        CandidateRecord("Timeout", "b", {"Environment": "PROD", "Region": "US"}),
    ])

    result = await get_setting("Timeout", {"Environment": "PROD"}, store=store)

    assert result["error"] == "ambiguous"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_invalid_version(memory_store):
    result = await get_setting("Timeout", {"Environment": "ABC", "Version": "1.3"}, store=memory_store)

    assert result["error"] == "invalid"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_reserved_dimension(memory_store):
    result = await get_setting("Timeout", {"Name": "Other"}, store=memory_store)

    assert result["error"] == "invalid"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_store_failure():
    store = MagicMock()
    store.select.side_effect = ConnectionError("refused")

    result = await get_setting("Timeout", {"Environment": "ABC"}, store=store)

    assert result["error"] == "data_source"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_put_setting_then_get(memory_store):
    dimensions = {"Environment": "QRS", "Version": "3.0.0"}

    written = await put_setting("Timeout", "qrs", dimensions, store=memory_store)
    read = await get_setting("Timeout", dimensions, store=memory_store)

    assert written["status"] == "success"
    assert written["rows_affected"] == 1
    assert read["value"] == "qrs"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_put_setting_rejects_name_dimension(memory_store):
    result = await put_setting("Timeout", "x", {"name": "Other"}, store=memory_store)

    assert result["error"] == "invalid"
    assert len(memory_store.records) == 5


@pytest.mark.asyncio
@pytest.mark.unit
async def test_put_setting_store_failure():
    store = MagicMock()
    store.update.side_effect = RuntimeError("read only")

    result = await put_setting("Timeout", "1", {"Environment": "ABC"}, store=store)

    assert result["error"] == "data_source"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_setting_dimension_name_is_case_insensitive():
    store = MemoryStore([
        CandidateRecord("Timeout", "prod", {"Environment": "PROD"}),
        CandidateRecord("Timeout", "fallback", {"Environment": "*"}),
    ])

    result = await get_setting("Timeout", {"environment": "PROD"}, store=store)

    assert result["value"] == "prod"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_lowercase_caller_dimension_overrides_configured(memory_store):
    settings = SettingsManager.get_instance()
    settings.resolution.environment = "JKL"
    settings.resolution.version = "5.0.0"

    result = await get_setting("Timeout", {"environment": "QRS", "version": "3.1.0"}, store=memory_store)

    assert result["status"] == "success"
    assert result["value"] == "v3"
    assert result["dimensions"] == {"Environment": "QRS", "Version": "3.1.0"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_put_setting_rejects_malformed_version():
    store = MemoryStore([CandidateRecord("Timeout", "30", {"Version": "*"})])

    result = await put_setting("Timeout", "x", {"Version": "latest"}, store=store)

    assert result["status"] == "error"
    assert result["error"] == "invalid"
    assert store.records == [CandidateRecord("Timeout", "30", {"Version": "*"})]

    follow_up = await get_setting("Timeout", {"Version": "1.0.0"}, store=store)
    assert follow_up["value"] == "30"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_put_setting_accepts_wildcard_version():
    store = MemoryStore()

    result = await put_setting("Timeout", "30", {"version": "*"}, store=store)

    assert result["status"] == "success"
    assert store.records == [CandidateRecord("Timeout", "30", {"Version": "*"})]
