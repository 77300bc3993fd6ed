"""Tests for settings and the store allow-list."""

import json
from pathlib import Path

import pytest

from linga_core.config import DEFAULT_BASE, LingaSettings, load_store_map, resolve_store
from linga_core.exceptions import ConfigError


class TestSettings:
    def test_defaults(self) -> None:
        settings = LingaSettings.from_env({"LINGA_API_KEY": "secret"})
        assert settings.api_key == "secret"
        assert settings.base_url == DEFAULT_BASE
        assert settings.timeout == 60.0
        assert settings.retries == 3
        assert settings.timezone is None

    def test_overrides_and_quotes(self) -> None:
        settings = LingaSettings.from_env(
            {
                "LINGA_API_KEY": '"quoted-key"',
                "LINGA_BASE": "'https://sandbox.lingaros.com/'",
                "LINGA_TIMEOUT": "15",
                "LINGA_RETRIES": "5",
                "LINGA_TZ": "Asia/Dubai",
            }
        )
        assert settings.api_key == "quoted-key"
        assert settings.base_url == "https://sandbox.lingaros.com"
        assert settings.timeout == 15.0
        assert settings.retries == 5
        assert settings.timezone == "Asia/Dubai"

    def test_missing_key(self) -> None:
        with pytest.raises(ConfigError, match="LINGA_API_KEY"):
            LingaSettings.from_env({})

    def test_invalid_numbers(self) -> None:
        with pytest.raises(ConfigError, match="LINGA_TIMEOUT"):
            LingaSettings.from_env({"LINGA_API_KEY": "k", "LINGA_TIMEOUT": "soon"})

    @pytest.mark.parametrize("zone", ["Not/AZone", "Asia/Dubia"])
    def test_unknown_time_zone(self, zone: str) -> None:
        with pytest.raises(ConfigError, match="LINGA_TZ"):
            LingaSettings.from_env({"LINGA_API_KEY": "k", "LINGA_TZ": zone})

    def test_blank_time_zone_is_unset(self) -> None:
        settings = LingaSettings.from_env({"LINGA_API_KEY": "k", "LINGA_TZ": "  "})
        assert settings.timezone is None


class TestStoreMap:
    @pytest.fixture
    def stores_json(self, tmp_path: Path) -> Path:
        path = tmp_path / "stores.json"
        path.write_text(
            json.dumps(
                {
                    "Common Grounds DIFC": "5e4be85b7237b70001de9106",
                    "Common Grounds Marina": {"id": "5e4be85b7237b70001de9107"},
                }
            ),
            encoding="utf-8",
        )
        return path

    def test_both_shapes(self, stores_json: Path) -> None:
        assert load_store_map(stores_json) == {
            "Common Grounds DIFC": "5e4be85b7237b70001de9106",
            "Common Grounds Marina": "5e4be85b7237b70001de9107",
        }

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot load"):
            load_store_map(tmp_path / "nope.json")

    @pytest.mark.parametrize(
        "content", ['["a", "b"]', '{"Store": 42}', '{"Store": {"name": "x"}}', "{not json"]
    )
    def test_bad_shapes(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "stores.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_store_map(path)

    def test_resolve_store(self) -> None:
        stores = {"DIFC": "id-1", "Marina": "id-2"}
        assert resolve_store(stores, name="Marina") == ("id-2", "Marina")
        assert resolve_store(stores, store_id="id-1") == ("id-1", "DIFC")

    def test_resolve_store_enforces_allow_list(self) -> None:
        stores = {"DIFC": "id-1"}
        with pytest.raises(ConfigError, match="not found"):
            resolve_store(stores, name="JLT")
        with pytest.raises(ConfigError, match="allow-list"):
            resolve_store(stores, store_id="id-9")
        with pytest.raises(ConfigError, match="required"):
            resolve_store(stores)
