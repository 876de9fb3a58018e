"""Tests for configuration loading and data dir resolution."""

import json
import os

import pytest

from handover import config
from handover.config import HandoverConfig, get_config_value, load_config, save_config, set_config_value
from handover.store.scope import detect_project_root, resolve_data_dir

ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "HANDOVER_MODEL",
    "HANDOVER_DATA_DIR",
    "HANDOVER_MAX_TOKENS",
    "HANDOVER_TEMPERATURE",
)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    global_path = tmp_path / "home" / ".handover" / "config.json"
    monkeypatch.setattr(config, "GLOBAL_CONFIG_PATH", str(global_path))
    project = tmp_path / "project"
    (project / ".handover").mkdir(parents=True)
    return project, global_path


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestLoadConfig:
    """Tests for the env > local > global > defaults merge."""

    def test_defaults(self, isolated):
        project, _ = isolated
        assert load_config(str(project)) == HandoverConfig()

    def test_local_overrides_global(self, isolated):
        project, global_path = isolated
        _write(global_path, {"model": "global-model", "maxTokens": 1000})
        _write(project / ".handover" / "config.json", {"model": "local-model"})

        loaded = load_config(str(project))

        assert loaded.model == "local-model"
        assert loaded.max_tokens == 1000

    def test_env_overrides_files(self, isolated, monkeypatch):
        project, _ = isolated
        _write(project / ".handover" / "config.json", {"apiKey": "file-key", "temperature": 0.2})
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        monkeypatch.setenv("HANDOVER_TEMPERATURE", "0.9")

        loaded = load_config(str(project))

        assert loaded.api_key == "env-key"
        assert loaded.temperature == 0.9

    def test_invalid_env_number_ignored(self, isolated, monkeypatch):
        project, _ = isolated
        monkeypatch.setenv("HANDOVER_MAX_TOKENS", "lots")
        assert load_config(str(project)).max_tokens == 4096

    def test_local_config_found_from_subdirectory(self, isolated):
        project, _ = isolated
        _write(project / ".handover" / "config.json", {"model": "local-model"})
        nested = project / "src" / "pkg"
        nested.mkdir(parents=True)
        assert load_config(str(nested)).model == "local-model"


class TestSaveConfig:
    def test_save_and_get(self, isolated):
        project, _ = isolated
        set_config_value("max_tokens", "2048", cwd=str(project))
        with open(project / ".handover" / "config.json", encoding="utf-8") as f:
            assert json.load(f) == {"maxTokens": 2048}
        assert get_config_value("max_tokens", cwd=str(project)) == 2048

    def test_save_global(self, isolated):
        project, global_path = isolated
        save_config({"model": "m"}, global_=True)
        assert json.loads(global_path.read_text(encoding="utf-8")) == {"model": "m"}

    def test_unknown_keys_rejected(self, isolated):
        project, _ = isolated
        with pytest.raises(ValueError):
            save_config({"colour": "blue"}, cwd=str(project))
        with pytest.raises(ValueError):
            get_config_value("colour", cwd=str(project))


class TestScope:
    def test_project_root_detection(self, isolated):
        project, _ = isolated
        nested = project / "a" / "b"
        nested.mkdir(parents=True)
        assert detect_project_root(str(nested)) == str(project)

    def test_resolve_relative_data_dir(self, isolated):
        project, _ = isolated
        assert resolve_data_dir(".handover", str(project)) == os.path.join(str(project), ".handover")

    def test_absolute_data_dir_kept(self, tmp_path):
        assert resolve_data_dir(str(tmp_path / "data")) == str(tmp_path / "data")
