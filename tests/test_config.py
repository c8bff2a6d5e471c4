"""
Tests for configuration loading and logging setup.
"""

import json
import logging

import pytest

from subtree_modules.config import (
    apply_env_overrides,
    configure_logging,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
)


class TestDefaults:

    def test_default_sections(self):
        config = get_default_config()

        assert config['general']['modules_directory'] == "modules"
        assert config['general']['manifest_file'] == "subtree-modules.yaml"
        assert config['general']['default_ref'] == "main"
        assert config['git']['executable'] == "git"
        assert config['dependencies']['manifest_extension'] == ".psd1"
        assert config['dependencies']['search_path_env'] == "PSModulePath"
        assert config['profile']['path'].endswith("Microsoft.PowerShell_profile.ps1")

    def test_load_without_file_returns_defaults(self):
        assert load_config() == get_default_config()


class TestConfigFiles:

    def test_yaml_file_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("general:\n  default_ref: master\n")
        monkeypatch.setenv("SUBTREE_MODULES_CONFIG", str(path))

        config = load_config()

        assert get_config_path() == path
        assert config['general']['default_ref'] == "master"
        assert config['general']['modules_directory'] == "modules"

    def test_json_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"git": {"timeout_seconds": 30}}))
        monkeypatch.setenv("SUBTREE_MODULES_CONFIG", str(path))

        assert load_config()['git']['timeout_seconds'] == 30

    def test_toml_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('[dependencies]\nmanifest_extension = ".psd1"\nsearch_path_env = "MY_MODULE_PATH"\n')
        monkeypatch.setenv("SUBTREE_MODULES_CONFIG", str(path))

        assert load_config()['dependencies']['search_path_env'] == "MY_MODULE_PATH"

    def test_home_directory_config(self, isolated_home):
        config_dir = isolated_home / ".subtree-modules"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("general:\n  modules_directory: vendor\n")

        assert load_config()['general']['modules_directory'] == "vendor"

    def test_invalid_file_falls_back_to_defaults(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        monkeypatch.setenv("SUBTREE_MODULES_CONFIG", str(path))

        assert load_config() == get_default_config()


class TestOverrides:

    def test_env_override_typed(self, monkeypatch):
        monkeypatch.setenv("SUBTREE_MODULES_GENERAL_MAX_CONCURRENT_OPERATIONS", "8")
        monkeypatch.setenv("SUBTREE_MODULES_GIT_EXECUTABLE", "/opt/git/bin/git")

        config = apply_env_overrides(get_default_config())

        assert config['general']['max_concurrent_operations'] == 8
        assert config['git']['executable'] == "/opt/git/bin/git"

    def test_config_path_variable_is_not_an_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUBTREE_MODULES_CONFIG", str(tmp_path / "missing.yaml"))

        config = apply_env_overrides(get_default_config())

        assert 'config' not in config

    def test_merge_is_recursive(self):
        merged = merge_configs({'a': {'x': 1, 'y': 2}, 'b': 1}, {'a': {'y': 3}})

        assert merged == {'a': {'x': 1, 'y': 3}, 'b': 1}


class TestLogging:

    def test_explicit_level_wins(self):
        logger = configure_logging(get_default_config(), level="debug")

        assert logger.name == "subtree_modules"
        assert logger.level == logging.DEBUG

    def test_level_from_config(self):
        config = get_default_config()
        config['logging']['level'] = "WARNING"

        assert configure_logging(config).level == logging.WARNING

    @pytest.fixture(autouse=True)
    def restore_level(self):
        logger = logging.getLogger("subtree_modules")
        level = logger.level
        yield
        logger.setLevel(level)
