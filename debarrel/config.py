"""
Configuration system for debarrel

Tool defaults are loaded from a configuration file (JSON or YAML) and from
environment variables, validated and merged over the built-in defaults.
Per-run options passed on the command line or to the API override them.
"""

import os
import json
import yaml
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any
from enum import Enum
import logging

from .constants import CONFIG_FILE_NAMES, DEFAULT_IGNORE, NON_SCRIPT_GLOB, RESOLVER_EXTENSIONS
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class QuoteStyle(Enum):
    """Quote style of synthesized module specifiers."""

    AUTO = "auto"
    SINGLE = "single"
    DOUBLE = "double"


class ConfigurationManager:
    """Manages configuration loading, validation, and merging."""

    DEFAULT_CONFIG_PATHS = list(CONFIG_FILE_NAMES)

    @staticmethod
    def find_config_file(search_dir: Optional[str] = None, search_paths: Optional[List[str]] = None) -> Optional[str]:
        """Find the first existing configuration file, relative to ``search_dir`` when given."""
        paths = search_paths or ConfigurationManager.DEFAULT_CONFIG_PATHS

        for path in paths:
            candidate = os.path.join(search_dir, path) if search_dir else path
            if os.path.isfile(candidate):
                return candidate
        return None

    @staticmethod
    def load_config_file(config_path: str) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if config_path.endswith((".yaml", ".yml")):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid configuration file format: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
        return data

    @staticmethod
    def load_env_config() -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config = {}

        # Resolution settings
        resolution = {}
        if os.getenv("DEBARREL_IGNORE_PATTERNS"):
            resolution["ignore_patterns"] = [
                pattern.strip() for pattern in os.getenv("DEBARREL_IGNORE_PATTERNS").split(",") if pattern.strip()
            ]

        if resolution:
            config["resolution"] = resolution

        # Rewrite settings
        rewrite = {}
        if os.getenv("DEBARREL_EXT") is not None:
            rewrite["ext"] = os.getenv("DEBARREL_EXT")

        if os.getenv("DEBARREL_UNSAFE_NAMESPACE"):
            rewrite["unsafe_namespace"] = os.getenv("DEBARREL_UNSAFE_NAMESPACE").lower() == "true"

        if os.getenv("DEBARREL_ORGANIZE_IMPORTS"):
            rewrite["organize_imports"] = os.getenv("DEBARREL_ORGANIZE_IMPORTS").lower() == "true"

        if os.getenv("DEBARREL_QUOTE_STYLE"):
            quote_style = os.getenv("DEBARREL_QUOTE_STYLE").lower()
            if quote_style in [style.value for style in QuoteStyle]:
                rewrite["quote_style"] = quote_style
            else:
                logger.warning("Invalid DEBARREL_QUOTE_STYLE value, using default")

        if rewrite:
            config["rewrite"] = rewrite

        return config

    @staticmethod
    def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge multiple configuration dictionaries, with later ones taking precedence."""
        result = {}

        for config in configs:
            if not config:
                continue

            for key, value in config.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = ConfigurationManager.merge_configs(result[key], value)
                else:
                    result[key] = value

        return result

    @staticmethod
    def validate_config(config_data: Dict[str, Any]) -> None:
        """Validate configuration data."""
        for section in ("resolution", "rewrite"):
            if section in config_data and not isinstance(config_data[section], dict):
                raise ConfigurationError(f"{section} must be a mapping")

        # Validate resolution settings
        if "resolution" in config_data:
            resolution = config_data["resolution"]

            for key in ("extensions", "ignore_patterns", "non_script_globs"):
                if key in resolution:
                    value = resolution[key]
                    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                        raise ConfigurationError(f"resolution.{key} must be a list of strings")

            for extension in resolution.get("extensions", []):
                if not extension.startswith("."):
                    raise ConfigurationError(f"resolution.extensions entries must start with '.': {extension}")

        # Validate rewrite settings
        if "rewrite" in config_data:
            rewrite = config_data["rewrite"]

            if "ext" in rewrite and rewrite["ext"] is not None:
                ext = rewrite["ext"]
                if not isinstance(ext, str) or (ext and not ext.startswith(".")):
                    raise ConfigurationError("rewrite.ext must be empty or start with '.'")

            for key in ("unsafe_namespace", "organize_imports"):
                if key in rewrite and not isinstance(rewrite[key], bool):
                    raise ConfigurationError(f"rewrite.{key} must be a boolean")

            if "quote_style" in rewrite:
                valid_styles = [style.value for style in QuoteStyle]
                if rewrite["quote_style"] not in valid_styles:
                    raise ConfigurationError(f"quote_style must be one of: {valid_styles}")


@dataclass
class ResolutionConfig:
    """Configuration for module resolution and file discovery."""

    extensions: List[str] = field(default_factory=lambda: list(RESOLVER_EXTENSIONS))
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    non_script_globs: List[str] = field(default_factory=lambda: [NON_SCRIPT_GLOB])


@dataclass
class RewriteConfig:
    """Configuration for synthesized import statements."""

    # None follows the extension of the specifier being replaced, "" strips it
    ext: Optional[str] = None
    unsafe_namespace: bool = False
    organize_imports: bool = False
    quote_style: QuoteStyle = QuoteStyle.AUTO


@dataclass
class DebarrelConfig:
    """Main configuration class for debarrel."""

    resolution_settings: ResolutionConfig = field(default_factory=ResolutionConfig)
    rewrite_settings: RewriteConfig = field(default_factory=RewriteConfig)

    @classmethod
    def default(cls) -> "DebarrelConfig":
        """Create default configuration."""
        return cls()

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        search_dir: Optional[str] = None,
        use_env: bool = True,
        validate: bool = True,
    ) -> "DebarrelConfig":
        """
        Load configuration from multiple sources with precedence:
        1. Default values
        2. Configuration file
        3. Environment variables (if use_env=True)

        Args:
            config_path: Path to configuration file. If None, searches for default files.
            search_dir: Directory searched for default files (the current directory if None)
            use_env: Whether to load environment variables
            validate: Whether to validate the configuration
        """
        configs_to_merge = []

        # Load from file
        file_config = {}
        if config_path:
            file_config = ConfigurationManager.load_config_file(config_path)
        else:
            found_config = ConfigurationManager.find_config_file(search_dir)
            if found_config:
                file_config = ConfigurationManager.load_config_file(found_config)
                logger.info(f"Loaded configuration from: {found_config}")

        configs_to_merge.append(file_config)

        # Load from environment variables
        if use_env:
            configs_to_merge.append(ConfigurationManager.load_env_config())

        merged_config = ConfigurationManager.merge_configs(*configs_to_merge)

        if validate:
            ConfigurationManager.validate_config(merged_config)

        resolution_config = ResolutionConfig()
        for key, value in merged_config.get("resolution", {}).items():
            if hasattr(resolution_config, key):
                setattr(resolution_config, key, list(value))

        rewrite_config = RewriteConfig()
        for key, value in merged_config.get("rewrite", {}).items():
            if hasattr(rewrite_config, key):
                if key == "quote_style" and isinstance(value, str):
                    setattr(rewrite_config, key, QuoteStyle(value))
                else:
                    setattr(rewrite_config, key, value)

        return cls(resolution_settings=resolution_config, rewrite_settings=rewrite_config)

    @classmethod
    def from_file(cls, config_path: str) -> "DebarrelConfig":
        """Load configuration from a file, ignoring the environment."""
        return cls.load(config_path=config_path, use_env=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "resolution": asdict(self.resolution_settings),
            "rewrite": {
                **asdict(self.rewrite_settings),
                "quote_style": self.rewrite_settings.quote_style.value,
            },
        }

    def to_file(self, config_path: str, format: str = "json") -> None:
        """
        Save configuration to file.

        Args:
            config_path: Path to save configuration
            format: File format ('json' or 'yaml')
        """
        config_data = self.to_dict()

        try:
            with open(config_path, "w", encoding="utf-8") as f:
                if format.lower() == "yaml":
                    yaml.dump(config_data, f, default_flow_style=False, indent=2)
                else:
                    json.dump(config_data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Error saving configuration file: {e}")

    def validate(self) -> None:
        """Validate the current configuration."""
        ConfigurationManager.validate_config(self.to_dict())


def load_config(
    config_path: Optional[str] = None,
    search_dir: Optional[str] = None,
    use_env: bool = True,
) -> DebarrelConfig:
    """
    Load configuration from file and/or environment variables.

    Args:
        config_path: Path to configuration file
        search_dir: Directory searched for a default configuration file
        use_env: Whether to load environment variables

    Returns:
        DebarrelConfig: Loaded configuration
    """
    return DebarrelConfig.load(config_path=config_path, search_dir=search_dir, use_env=use_env)
