"""
Configuration Manager

Handles hierarchical configuration loading and validation with support for
CLI args → environment variables → config files → defaults.
"""

import os
import json
import logging
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from pydantic import ValidationError

from stereocrawl.core.config.models import AppConfig
from stereocrawl.core.exceptions import ConfigurationError, ErrorCode


logger = logging.getLogger(__name__)

ENV_PREFIX = "STEREOCRAWL_"


class ConfigManager:
    """
    Manages application configuration with hierarchical loading and validation.

    Configuration sources in order of precedence:
    1. CLI arguments (highest priority)
    2. Environment variables
    3. Configuration files
    4. Default values (lowest priority)
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to configuration file; when omitted the
                default search paths are tried in order
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._config_paths = self._get_default_config_paths()
        self.loaded_from: Optional[Path] = None

    def _get_default_config_paths(self) -> List[Path]:
        """Get default configuration file search paths."""
        search_paths = [
            Path.cwd() / "stereocrawl.yaml",
            Path.cwd() / "stereocrawl.yml",
            Path.cwd() / "stereocrawl.json",
            Path.cwd() / ".stereocrawl.yaml",
            Path.home() / ".config" / "stereocrawl" / "config.yaml",
        ]

        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            search_paths.append(Path(xdg_config) / "stereocrawl" / "config.yaml")

        return search_paths

    def load_config(
        self,
        cli_args: Optional[Dict[str, Any]] = None,
        env_prefix: str = ENV_PREFIX
    ) -> AppConfig:
        """
        Load and validate configuration from all sources.

        Args:
            cli_args: Dictionary of CLI arguments (``None`` values are ignored)
            env_prefix: Prefix for environment variables

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_config_file()
        if file_config:
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file {self.loaded_from} must contain a mapping at the top level",
                    error_code=ErrorCode.CONFIG_INVALID_FORMAT
                )
            config_data = self._deep_merge(config_data, file_config)

        env_config = self._load_env_config(env_prefix)
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        if cli_args:
            cli_config = self._normalize_cli_args(cli_args)
            config_data = self._deep_merge(config_data, cli_config)

        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e}",
                error_code=ErrorCode.CONFIG_INVALID_VALUE,
                cause=e
            )

        logger.debug(f"Configuration loaded (file: {self.loaded_from or 'none'})")
        return self._config

    def _load_config_file(self) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        config_file = self.config_file

        if config_file is not None and not config_file.is_file():
            raise ConfigurationError(
                f"Config file not found: {config_file}",
                error_code=ErrorCode.CONFIG_FILE_NOT_FOUND,
                config_key="config_file",
                config_value=str(config_file)
            )

        if not config_file:
            for path in self._config_paths:
                if path.exists() and path.is_file():
                    config_file = path
                    break

        if not config_file:
            return None

        self.loaded_from = config_file
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix.lower() in {'.yaml', '.yml'}:
                    return yaml.safe_load(f) or {}
                elif config_file.suffix.lower() == '.json':
                    return json.load(f)
                else:
                    content = f.read()
                    try:
                        return yaml.safe_load(content) or {}
                    except yaml.YAMLError:
                        return json.loads(content)
        except (IOError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_file}: {e}",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT,
                cause=e
            )

    def _load_env_config(self, prefix: str) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        env_mappings = {
            # Discovery configuration
            f"{prefix}CLIENT_ID": ("discovery", "client_id", str),
            f"{prefix}CLIENT_SECRET": ("discovery", "client_secret", str),
            f"{prefix}USERNAME": ("discovery", "username", str),
            f"{prefix}PASSWORD": ("discovery", "password", str),
            f"{prefix}USER_AGENT": ("discovery", "user_agent", str),
            f"{prefix}SUBREDDIT": ("discovery", "subreddit", str),
            f"{prefix}LISTING": ("discovery", "listing", str),
            f"{prefix}TIME_FILTER": ("discovery", "time_filter", str),
            f"{prefix}LIMIT": ("discovery", "limit", int),
            f"{prefix}YEAR": ("discovery", "year", int),

            # Download configuration
            f"{prefix}DOWNLOAD_DIR": ("download", "directory", str),
            f"{prefix}TIMEOUT": ("download", "timeout", int),
            f"{prefix}SLEEP_INTERVAL": ("download", "sleep_interval", float),

            # Processing configuration
            f"{prefix}SUPPORTED_FORMATS": ("processing", "supported_formats", self._parse_list),
            f"{prefix}MIN_ASPECT_RATIO": ("processing", "min_aspect_ratio", float),
            f"{prefix}MAX_ASPECT_RATIO": ("processing", "max_aspect_ratio", float),
            f"{prefix}MIN_WIDTH": ("processing", "min_width", int),

            # Output configuration
            f"{prefix}OUTPUT_DIR": ("output", "directory", str),

            # Pipeline configuration
            f"{prefix}MODE": ("pipeline", "mode", str),
            f"{prefix}RUN_PROCESSING": ("pipeline", "run_processing", self._parse_bool),
            f"{prefix}FAN_OUT": ("pipeline", "fan_out", str),
            f"{prefix}MAX_WORKERS": ("pipeline", "max_workers", int),
            f"{prefix}ITEM_TIMEOUT": ("pipeline", "item_timeout", float),

            # General settings
            f"{prefix}VERBOSE": ("verbose", None, self._parse_bool),
            f"{prefix}DEBUG": ("debug", None, self._parse_bool),
            f"{prefix}QUIET": ("quiet", None, self._parse_bool),
        }

        for env_var, (section, key, parser) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is None or value == "":
                continue
            try:
                parsed_value = parser(value)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid value for {env_var}: {value} ({e})",
                    error_code=ErrorCode.CONFIG_INVALID_VALUE,
                    config_key=env_var,
                    config_value=value
                )
            if key is None:
                env_config[section] = parsed_value
            else:
                env_config.setdefault(section, {})[key] = parsed_value

        return env_config

    def _normalize_cli_args(self, cli_args: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize CLI arguments to configuration structure."""
        normalized: Dict[str, Any] = {}

        cli_mappings = {
            'verbose': 'verbose',
            'debug': 'debug',
            'quiet': 'quiet',

            'client_id': ('discovery', 'client_id'),
            'client_secret': ('discovery', 'client_secret'),
            'username': ('discovery', 'username'),
            'password': ('discovery', 'password'),
            'user_agent': ('discovery', 'user_agent'),
            'subreddit': ('discovery', 'subreddit'),
            'listing': ('discovery', 'listing'),
            'time_filter': ('discovery', 'time_filter'),
            'limit': ('discovery', 'limit'),
            'year': ('discovery', 'year'),

            'download_dir': ('download', 'directory'),
            'timeout': ('download', 'timeout'),

            'output_dir': ('output', 'directory'),

            'mode': ('pipeline', 'mode'),
            'run_processing': ('pipeline', 'run_processing'),
            'fan_out': ('pipeline', 'fan_out'),
            'workers': ('pipeline', 'max_workers'),
        }

        for cli_key, value in cli_args.items():
            if value is None:
                continue

            mapping = cli_mappings.get(cli_key)
            if mapping is None:
                logger.debug(f"Ignoring unknown CLI option '{cli_key}'")
                continue
            if isinstance(mapping, tuple):
                section, key = mapping
                normalized.setdefault(section, {})[key] = value
            else:
                normalized[mapping] = value

        return normalized

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _parse_bool(value: Union[str, bool]) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {'true', '1', 'yes', 'on', 'enabled'}
        return bool(value)

    @staticmethod
    def _parse_list(value: Union[str, List[str]]) -> List[str]:
        """Parse list value from string."""
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            return [item.strip() for item in value.split(',') if item.strip()]
        return []

    def validate_config(self, config: Optional[AppConfig] = None) -> List[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate (uses loaded config if None)

        Returns:
            List of validation warnings
        """
        if config is None:
            config = self._config

        if config is None:
            return ["No configuration loaded"]

        warnings = []

        if config.pipeline.mode == "fresh" and not config.discovery.has_credentials():
            warnings.append("Fresh discovery requested but client_id/client_secret not provided")

        if config.pipeline.mode == "resume" and not config.discovered_snapshot_path().is_file():
            warnings.append(f"Resume requested but no snapshot at {config.discovered_snapshot_path()}")

        if config.discovery.year is not None and config.discovery.listing in ('top', 'controversial') \
                and config.discovery.time_filter != 'all':
            warnings.append(
                f"Year filter {config.discovery.year} combined with time filter "
                f"'{config.discovery.time_filter}' may discard most posts"
            )

        return warnings

    def create_example_config(self, output_file: Path) -> None:
        """
        Write an example YAML configuration with every default filled in.

        Credentials are left empty; provide them via environment variables or
        a .env file instead of committing them.
        """
        config_dict = AppConfig().model_dump(mode='json', exclude={'created'})

        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)

    @property
    def config(self) -> Optional[AppConfig]:
        """Get the loaded configuration."""
        return self._config
