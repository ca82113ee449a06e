"""
Tests for Configuration Manager

Layered loading: CLI arguments over environment variables over config files
over defaults.
"""

import json
import pytest
import yaml
from pathlib import Path

from stereocrawl.core.config.manager import ConfigManager
from stereocrawl.core.config.models import AppConfig
from stereocrawl.core.exceptions import ConfigurationError, ErrorCode


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestConfigManager:

    def test_defaults_only(self):
        config = ConfigManager().load_config()
        assert isinstance(config, AppConfig)
        assert config.discovery.subreddit == "crossview"

    def test_explicit_yaml_file(self, tmp_path):
        path = write_yaml(tmp_path / "custom.yaml", {
            'discovery': {'subreddit': 'parallelview', 'limit': 10},
            'pipeline': {'fan_out': 'first'},
        })
        manager = ConfigManager(config_file=path)
        config = manager.load_config()

        assert config.discovery.subreddit == "parallelview"
        assert config.discovery.limit == 10
        assert config.pipeline.fan_out == "first"
        assert manager.loaded_from == path

    def test_json_file(self, tmp_path):
        path = tmp_path / "stereocrawl.json"
        path.write_text(json.dumps({'output': {'directory': 'results'}}), encoding="utf-8")
        config = ConfigManager(config_file=path).load_config()
        assert config.output.directory == Path("results")

    def test_search_path_in_working_directory(self, tmp_path):
        write_yaml(tmp_path / "stereocrawl.yaml", {'discovery': {'listing': 'new'}})
        manager = ConfigManager()
        config = manager.load_config()
        assert config.discovery.listing == "new"
        assert manager.loaded_from == Path.cwd() / "stereocrawl.yaml"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=tmp_path / "absent.yaml").load_config()
        assert exc_info.value.error_code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=path).load_config()
        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID_FORMAT

    def test_invalid_value_wrapped(self, tmp_path):
        path = write_yaml(tmp_path / "bad.yaml", {'discovery': {'listing': 'best'}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=path).load_config()
        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.recoverable is False


class TestPrecedence:

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write_yaml(tmp_path / "custom.yaml", {'discovery': {'subreddit': 'fromfile', 'limit': 10}})
        monkeypatch.setenv("STEREOCRAWL_SUBREDDIT", "fromenv")

        config = ConfigManager(config_file=path).load_config()

        assert config.discovery.subreddit == "fromenv"
        assert config.discovery.limit == 10

    def test_cli_overrides_env_and_file(self, tmp_path, monkeypatch):
        path = write_yaml(tmp_path / "custom.yaml", {'discovery': {'subreddit': 'fromfile'}})
        monkeypatch.setenv("STEREOCRAWL_SUBREDDIT", "fromenv")

        config = ConfigManager(config_file=path).load_config(cli_args={'subreddit': 'fromcli'})

        assert config.discovery.subreddit == "fromcli"

    def test_none_cli_values_do_not_override(self, monkeypatch):
        monkeypatch.setenv("STEREOCRAWL_LIMIT", "25")
        config = ConfigManager().load_config(cli_args={'limit': None, 'mode': None})
        assert config.discovery.limit == 25
        assert config.pipeline.mode == "fresh"

    def test_env_parsing(self, monkeypatch):
        monkeypatch.setenv("STEREOCRAWL_RUN_PROCESSING", "no")
        monkeypatch.setenv("STEREOCRAWL_MAX_WORKERS", "4")
        monkeypatch.setenv("STEREOCRAWL_SUPPORTED_FORMATS", "jpg, png")
        monkeypatch.setenv("STEREOCRAWL_YEAR", "2021")
        monkeypatch.setenv("STEREOCRAWL_DEBUG", "true")

        config = ConfigManager().load_config()

        assert config.pipeline.run_processing is False
        assert config.pipeline.max_workers == 4
        assert config.processing.supported_formats == ["JPEG", "PNG"]
        assert config.discovery.year == 2021
        assert config.debug is True

    def test_env_bad_number(self, monkeypatch):
        monkeypatch.setenv("STEREOCRAWL_LIMIT", "lots")
        with pytest.raises(ConfigurationError, match="STEREOCRAWL_LIMIT"):
            ConfigManager().load_config()

    def test_cli_key_mapping(self):
        config = ConfigManager().load_config(cli_args={
            'mode': 'resume',
            'run_processing': False,
            'workers': 3,
            'download_dir': 'cache',
            'output_dir': 'accepted',
            'time_filter': 'all',
            'year': 2020,
            'unknown_flag': True,
        })

        assert config.pipeline.mode == "resume"
        assert config.pipeline.run_processing is False
        assert config.pipeline.max_workers == 3
        assert config.download.directory == Path("cache")
        assert config.output.directory == Path("accepted")
        assert (config.discovery.time_filter, config.discovery.year) == ("all", 2020)


class TestValidationWarnings:

    def test_fresh_without_credentials(self):
        manager = ConfigManager()
        manager.load_config()
        warnings = manager.validate_config()
        assert any("client_id" in warning for warning in warnings)

    def test_resume_without_snapshot(self):
        manager = ConfigManager()
        config = manager.load_config(cli_args={'mode': 'resume'})
        assert any("no snapshot" in warning for warning in manager.validate_config(config))

    def test_year_with_narrow_time_window(self):
        manager = ConfigManager()
        config = manager.load_config(cli_args={'year': 2019, 'client_id': 'id', 'client_secret': 'secret'})
        warnings = manager.validate_config(config)
        assert len(warnings) == 1
        assert "2019" in warnings[0]


class TestExampleConfig:

    def test_example_config_loads_back(self, tmp_path):
        path = tmp_path / "nested" / "example.yaml"
        ConfigManager().create_example_config(path)

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data['discovery']['subreddit'] == "crossview"
        assert 'created' not in data

        config = ConfigManager(config_file=path).load_config()
        assert config.pipeline == AppConfig().pipeline
