"""
Tests for config module.
"""

import json

import pytest

from debarrel.config import (
    ConfigurationManager,
    DebarrelConfig,
    QuoteStyle,
    load_config,
)
from debarrel.constants import DEFAULT_IGNORE
from debarrel.errors import ConfigurationError

ENV_VARS = [
    "DEBARREL_IGNORE_PATTERNS",
    "DEBARREL_EXT",
    "DEBARREL_UNSAFE_NAMESPACE",
    "DEBARREL_ORGANIZE_IMPORTS",
    "DEBARREL_QUOTE_STYLE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove debarrel environment variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for default configuration."""

    def test_default_values(self):
        """Test the built-in defaults."""
        config = DebarrelConfig.default()
        assert config.rewrite_settings.ext is None
        assert config.rewrite_settings.quote_style is QuoteStyle.AUTO
        assert not config.rewrite_settings.unsafe_namespace
        assert config.resolution_settings.ignore_patterns == DEFAULT_IGNORE
        assert ".ts" in config.resolution_settings.extensions

    def test_load_without_file(self, tmp_path):
        """Test that loading from an empty directory gives defaults."""
        config = load_config(search_dir=str(tmp_path))
        assert config.to_dict() == DebarrelConfig.default().to_dict()


class TestFileLoading:
    """Tests for configuration files."""

    def test_yaml_file(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / "debarrel.yaml"
        path.write_text("rewrite:\n  ext: .js\n  quote_style: single\n", encoding="utf-8")
        config = DebarrelConfig.from_file(str(path))
        assert config.rewrite_settings.ext == ".js"
        assert config.rewrite_settings.quote_style is QuoteStyle.SINGLE

    def test_json_file_found_in_search_dir(self, tmp_path):
        """Test discovery of a default file name."""
        (tmp_path / ".debarrel.json").write_text(
            json.dumps({"resolution": {"ignore_patterns": ["**/gen/**"]}}), encoding="utf-8"
        )
        config = load_config(search_dir=str(tmp_path))
        assert config.resolution_settings.ignore_patterns == ["**/gen/**"]

    def test_missing_file(self, tmp_path):
        """Test that an explicit missing file is an error."""
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML is an error."""
        path = tmp_path / "debarrel.yml"
        path.write_text("rewrite: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        """Test that a top-level list is rejected."""
        path = tmp_path / "debarrel.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_to_file_and_back(self, tmp_path):
        """Test saving and reloading a configuration."""
        config = DebarrelConfig.default()
        config.rewrite_settings.organize_imports = True
        path = tmp_path / "saved.yaml"
        config.to_file(str(path), format="yaml")
        assert DebarrelConfig.from_file(str(path)).rewrite_settings.organize_imports


class TestValidation:
    """Tests for configuration validation."""

    @pytest.mark.parametrize(
        "data",
        [
            {"rewrite": {"quote_style": "backtick"}},
            {"rewrite": {"ext": "js"}},
            {"rewrite": {"unsafe_namespace": "yes"}},
            {"resolution": {"extensions": ["ts"]}},
            {"resolution": {"ignore_patterns": "**/dist/**"}},
            {"rewrite": []},
        ],
    )
    def test_invalid_values(self, data):
        """Test that invalid values are rejected."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager.validate_config(data)

    def test_empty_ext_is_valid(self):
        """Test that an empty extension (strip it) is accepted."""
        ConfigurationManager.validate_config({"rewrite": {"ext": ""}})


class TestEnvironment:
    """Tests for environment overrides."""

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test that environment variables win over the file."""
        path = tmp_path / "debarrel.json"
        path.write_text(json.dumps({"rewrite": {"ext": ".js", "organize_imports": False}}), encoding="utf-8")
        monkeypatch.setenv("DEBARREL_EXT", "")
        monkeypatch.setenv("DEBARREL_ORGANIZE_IMPORTS", "true")
        config = load_config(str(path))
        assert config.rewrite_settings.ext == ""
        assert config.rewrite_settings.organize_imports

    def test_invalid_quote_style_is_ignored(self, monkeypatch):
        """Test that a bad quote style from the environment falls back to the default."""
        monkeypatch.setenv("DEBARREL_QUOTE_STYLE", "fancy")
        assert ConfigurationManager.load_env_config() == {}

    def test_use_env_false(self, monkeypatch, tmp_path):
        """Test that the environment can be ignored."""
        monkeypatch.setenv("DEBARREL_UNSAFE_NAMESPACE", "true")
        config = load_config(search_dir=str(tmp_path), use_env=False)
        assert not config.rewrite_settings.unsafe_namespace


class TestMerge:
    """Tests for ConfigurationManager.merge_configs."""

    def test_nested_merge(self):
        """Test that nested sections merge key by key."""
        merged = ConfigurationManager.merge_configs(
            {"rewrite": {"ext": ".js", "organize_imports": True}},
            {"rewrite": {"ext": ""}},
            None,
        )
        assert merged == {"rewrite": {"ext": "", "organize_imports": True}}
