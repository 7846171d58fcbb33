"""Tests for configuration models and file/env/CLI precedence."""

import json

import pytest
from pydantic import ValidationError

from RestScroll.DataAccess.config import (
    HttpClientConfig,
    RestScrollConfig,
    ScrollConfig,
    export_config_schema,
    load_config,
)


class TestModels:
    def test_defaults(self):
        config = RestScrollConfig()
        assert config.http.base_url == "http://localhost:3000/api"
        assert config.http.timeout_ms == 10_000
        assert config.http.retry_attempts == 3
        assert config.http.retry_delay_ms == 1000
        assert config.scroll.threshold == 200
        assert config.scroll.debounce_ms == 100
        assert config.scroll.page_size == 20
        assert config.logging.level == "INFO"

    def test_base_url_trailing_slash_stripped(self):
        assert HttpClientConfig(base_url="https://api.example.test/api/").base_url == "https://api.example.test/api"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_url": "ftp://nope"},
            {"timeout_ms": 0},
            {"retry_attempts": -1},
            {"retry_delay_ms": -10},
            {"unknown": 1},
        ],
    )
    def test_invalid_http_settings(self, kwargs):
        with pytest.raises(ValidationError):
            HttpClientConfig(**kwargs)

    def test_invalid_scroll_settings(self):
        with pytest.raises(ValidationError):
            ScrollConfig(page_size=0)
        with pytest.raises(ValidationError):
            ScrollConfig(debounce_ms=-1)

    def test_config_hash_is_deterministic(self):
        assert RestScrollConfig().config_hash() == RestScrollConfig().config_hash()
        changed = RestScrollConfig(http=HttpClientConfig(retry_attempts=5))
        assert changed.config_hash() != RestScrollConfig().config_hash()


class TestLoadConfig:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "restscroll.yaml"
        path.write_text("http:\n  base_url: https://yaml.example.test\n  retry_attempts: 1\nscroll:\n  page_size: 10\n")

        config = load_config(str(path), env={})

        assert config.http.base_url == "https://yaml.example.test"
        assert config.http.retry_attempts == 1
        assert config.scroll.page_size == 10

    def test_json_file(self, tmp_path):
        path = tmp_path / "restscroll.json"
        path.write_text(json.dumps({"scroll": {"threshold": 50}}))
        assert load_config(str(path), env={}).scroll.threshold == 50

    def test_precedence_file_env_cli(self, tmp_path):
        path = tmp_path / "restscroll.yaml"
        path.write_text("http:\n  retry_attempts: 1\n  timeout_ms: 2000\n")
        env = {
            "RESTSCROLL_HTTP__RETRY_ATTEMPTS": "4",
            "RESTSCROLL_HTTP__HEADERS": '{"X-App": "diary"}',
            "RESTSCROLL_LOGGING__JSON_FORMAT": "true",
            "UNRELATED": "x",
        }

        config = load_config(str(path), env=env, cli_overrides={"http": {"retry_attempts": 6}})

        assert config.http.retry_attempts == 6
        assert config.http.timeout_ms == 2000
        assert config.http.headers == {"X-App": "diary"}
        assert config.logging.json_format is True

    def test_env_string_value(self):
        config = load_config(env={"RESTSCROLL_HTTP__BASE_URL": "https://env.example.test"})
        assert config.http.base_url == "https://env.example.test"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_config(str(tmp_path / "absent.yaml"), env={})

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "restscroll.toml"
        path.write_text("x = 1")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(str(path), env={})

    def test_invalid_values_raise(self):
        with pytest.raises(ValueError):
            load_config(env={"RESTSCROLL_HTTP__TIMEOUT_MS": "0"})


def test_schema_export():
    schema = export_config_schema()
    assert "http" in schema["properties"]
    assert "scroll" in schema["properties"]
