"""
Tests for configuration loading.

Tests layer precedence (defaults < user < project < env vars), env var
validation and .env file loading.
"""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from plandash.core.config import (
    DeploymentMode,
    PlandashConfig,
    get_user_config_path,
    load_config,
    load_layered_env,
)
from plandash.core.config.loader import apply_env_overrides, deep_merge, load_json_file

CONFIG_ENV_VARS = (
    "PLANNING_DIR",
    "PLANDASH_STORE_URL",
    "PLANDASH_CACHE_URL",
    "PLANDASH_CACHE_TTL",
    "PLANDASH_MODE",
    "PLANDASH_WEBHOOK_URL",
    "CRON_SECRET",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Point XDG_CONFIG_HOME at a temp dir and clear config env vars."""
    xdg = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield xdg
    # load_layered_env writes os.environ directly
    for name in CONFIG_ENV_VARS + ("PLANDASH_TEST_VALUE",):
        os.environ.pop(name, None)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestDeepMerge:
    """Test dictionary merging."""

    def test_nested_merge(self):
        base = {"a": 1, "b": {"x": 10, "y": 20}}
        override = {"b": {"y": 30, "z": 40}, "c": 3}

        assert deep_merge(base, override) == {"a": 1, "b": {"x": 10, "y": 30, "z": 40}, "c": 3}
        assert base == {"a": 1, "b": {"x": 10, "y": 20}}

    def test_scalar_replaces_dict(self):
        assert deep_merge({"a": {"x": 1}}, {"a": 2}) == {"a": 2}

    def test_adopted_dict_is_copied(self):
        """Test that a nested dict taken from override is not shared."""
        override = {"b": {"y": 1}}

        merged = deep_merge({}, override)
        merged["b"]["y"] = 2

        assert override == {"b": {"y": 1}}


class TestLoadJsonFile:
    """Test tolerant JSON loading."""

    def test_missing(self, tmp_path: Path):
        assert load_json_file(tmp_path / "nope.json") is None

    def test_invalid_json(self, tmp_path: Path, caplog):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        assert load_json_file(path) is None
        assert "Failed to parse config" in caplog.text

    def test_non_object(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert load_json_file(path) is None


class TestEnvOverrides:
    """Test environment variable overrides."""

    def test_all_variables(self, monkeypatch):
        monkeypatch.setenv("PLANNING_DIR", "/srv/planning")
        monkeypatch.setenv("PLANDASH_STORE_URL", "sqlite:////srv/dashboard.db")
        monkeypatch.setenv("PLANDASH_CACHE_URL", "redis://cache:6379/0")
        monkeypatch.setenv("PLANDASH_CACHE_TTL", "60")
        monkeypatch.setenv("PLANDASH_MODE", "cache")
        monkeypatch.setenv("PLANDASH_WEBHOOK_URL", "https://dash.example.com/api/webhook/sync")
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        result = apply_env_overrides({"scan": {"root": "./planning", "task_prefix": "T"}})

        assert result == {
            "scan": {"root": "/srv/planning", "task_prefix": "T"},
            "store": {"url": "sqlite:////srv/dashboard.db"},
            "cache": {"url": "redis://cache:6379/0", "ttl_seconds": 60},
            "mode": "cache",
            "webhook": {"url": "https://dash.example.com/api/webhook/sync"},
            "cron_secret": "s3cret",
        }

    def test_does_not_mutate_input(self, monkeypatch):
        monkeypatch.setenv("PLANNING_DIR", "/srv/planning")
        original = {"scan": {"root": "./planning"}}

        apply_env_overrides(original)

        assert original == {"scan": {"root": "./planning"}}

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_invalid_ttl_ignored(self, monkeypatch, caplog, value):
        monkeypatch.setenv("PLANDASH_CACHE_TTL", value)

        result = apply_env_overrides({"cache": {"ttl_seconds": 300}})

        assert result["cache"]["ttl_seconds"] == 300
        assert "PLANDASH_CACHE_TTL" in caplog.text


class TestLoadConfig:
    """Test layered loading."""

    def test_defaults(self, project_dir):
        config = load_config(project_dir)

        assert config.mode == DeploymentMode.STORE
        assert config.scan.root == "./planning"
        assert config.store.url == "sqlite:///.plandash/dashboard.db"
        assert config.cache.ttl_seconds == 300
        assert config.cache.url is None
        assert config.cron_secret is None
        assert config.server.port == 8080

    def test_user_config_in_xdg_home(self, isolated_env, project_dir):
        assert get_user_config_path() == isolated_env / "plandash" / "config.json"
        write_json(get_user_config_path(), {"cache": {"ttl_seconds": 120}})

        assert load_config(project_dir).cache.ttl_seconds == 120

    def test_precedence(self, project_dir, monkeypatch):
        """Test that project beats user and env beats both."""
        write_json(
            get_user_config_path(),
            {"mode": "cache", "cache": {"ttl_seconds": 120, "key": "user:key"}},
        )
        write_json(project_dir / ".plandash.json", {"cache": {"ttl_seconds": 90}})
        monkeypatch.setenv("PLANDASH_MODE", "STORE")

        config = load_config(project_dir)

        assert config.mode == DeploymentMode.STORE
        assert config.cache.ttl_seconds == 90
        assert config.cache.key == "user:key"

    def test_invalid_project_config_skipped(self, project_dir):
        (project_dir / ".plandash.json").write_text("{oops")
        assert load_config(project_dir).mode == DeploymentMode.STORE

    def test_invalid_value_raises(self, project_dir):
        write_json(project_dir / ".plandash.json", {"cache": {"ttl_seconds": 0}})

        with pytest.raises(ValidationError):
            load_config(project_dir)

    def test_unknown_keys_allowed(self, project_dir):
        write_json(project_dir / ".plandash.json", {"ui": {"theme": "dark"}})
        assert load_config(project_dir).model_extra == {"ui": {"theme": "dark"}}

    def test_mode_case_insensitive(self):
        assert PlandashConfig(mode=" Cache ").mode == DeploymentMode.CACHE


class TestLoadLayeredEnv:
    """Test .env loading."""

    def test_existing_environment_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "from-shell")
        env_file = tmp_path / ".env"
        env_file.write_text("CRON_SECRET=from-file\n")

        loaded = load_layered_env(user_env_paths=[], project_env_paths=[env_file])

        assert loaded == []
        assert os.environ["CRON_SECRET"] == "from-shell"

    def test_project_overrides_user(self, tmp_path):
        user_env = tmp_path / "user.env"
        user_env.write_text("PLANDASH_TEST_VALUE=user\nPLANNING_DIR=/user/planning\n")
        project_env = tmp_path / "project.env"
        project_env.write_text("PLANDASH_TEST_VALUE=project\n")

        loaded = load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert loaded == ["PLANDASH_TEST_VALUE", "PLANNING_DIR"]
        assert os.environ["PLANDASH_TEST_VALUE"] == "project"
        assert os.environ["PLANNING_DIR"] == "/user/planning"

    def test_default_paths(self, isolated_env, project_dir):
        (isolated_env / "plandash").mkdir(parents=True)
        (isolated_env / "plandash" / ".env").write_text("CRON_SECRET=user-secret\n")
        (project_dir / ".env.local").write_text("PLANDASH_MODE=cache\n")

        load_layered_env(project_dir=project_dir)

        assert os.environ["CRON_SECRET"] == "user-secret"
        assert load_config(project_dir).mode == DeploymentMode.CACHE

    def test_missing_files(self, tmp_path):
        assert load_layered_env(project_dir=tmp_path, user_env_paths=[]) == []
