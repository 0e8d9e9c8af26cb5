"""
Unit tests for configuration loader module.
"""

import logging

import pytest
import yaml

from api_editor import config_loader
from api_editor.config_loader import (
    deep_merge,
    get_config_value,
    get_default_config,
    get_logging_level,
    load_config,
    reload_config,
    validate_config,
)


@pytest.fixture(autouse=True)
def clear_config_cache():
    config_loader._config_cache = None
    yield
    config_loader._config_cache = None


class TestDeepMerge:
    """Test cases for deep_merge function."""

    def test_deep_merge_nested_dicts(self):
        """Nested sections merge key by key."""
        base = {'editor': {'default_method': 'GET', 'default_body_type': 'FORM'}}
        update = {'editor': {'default_method': 'POST'}, 'extra': 1}

        result = deep_merge(base, update)

        assert result == {'editor': {'default_method': 'POST', 'default_body_type': 'FORM'}, 'extra': 1}
        assert base == {'editor': {'default_method': 'GET', 'default_body_type': 'FORM'}}

    def test_deep_merge_non_dict_values(self):
        assert deep_merge({'a': [1]}, {'a': [2]}) == {'a': [2]}


class TestLoadConfig:
    """Test cases for load_config."""

    def test_defaults_are_valid(self):
        assert validate_config(get_default_config())

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == get_default_config()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == get_default_config()

    def test_malformed_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("editor: [unclosed")
        assert load_config(path) == get_default_config()

    def test_non_dict_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        assert load_config(path) == get_default_config()

    def test_user_values_are_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({'storage': {'api_dir': 'data/apis'}, 'editor': {'default_method': 'POST'}}))

        config = load_config(path)

        assert config['storage']['api_dir'] == 'data/apis'
        assert config['editor']['default_method'] == 'POST'
        assert config['editor']['default_body_type'] == 'FORM'

    def test_invalid_values_use_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({'editor': {'default_method': 'FETCH'}}))
        assert load_config(path) == get_default_config()


class TestValidateConfig:
    """Test cases for validate_config."""

    @pytest.mark.parametrize("section,key,value", [
        ('storage', 'api_dir', ''),
        ('editor', 'default_body_type', 'XML'),
        ('logging', 'level', 'LOUD'),
    ])
    def test_rejects_bad_values(self, section, key, value):
        config = get_default_config()
        config[section][key] = value
        assert not validate_config(config)

    def test_rejects_missing_section(self):
        config = get_default_config()
        del config['editor']
        assert not validate_config(config)


class TestConfigValues:
    """Test cases for cached lookups."""

    def test_get_config_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({'ui': {'page_title': 'My APIs'}, 'logging': {'level': 'debug'}}))
        reload_config(path)

        assert get_config_value('ui', 'page_title') == 'My APIs'
        assert get_config_value('ui', 'missing', 'fallback') == 'fallback'
        assert get_config_value('nope', 'key', 3) == 3
        assert get_logging_level() == logging.DEBUG

    def test_reload_replaces_cache(self, tmp_path):
        first = tmp_path / "first.yaml"
        first.write_text(yaml.dump({'storage': {'api_dir': 'one'}}))
        second = tmp_path / "second.yaml"
        second.write_text(yaml.dump({'storage': {'api_dir': 'two'}}))

        reload_config(first)
        assert get_config_value('storage', 'api_dir') == 'one'
        reload_config(second)
        assert get_config_value('storage', 'api_dir') == 'two'
