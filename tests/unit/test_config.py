"""
Unit tests for configuration.
"""

import pytest

from es_datastream.config import OutputConfig, Settings
from es_datastream.errors import ConfigError


def test_output_config_defaults():
    cfg = OutputConfig.from_dict({"data_stream_name": "my-logs"})
    assert cfg.hosts == ["http://localhost:9200"]
    assert cfg.time_precision == 3
    assert cfg.verify_certs is True


def test_data_stream_name_required():
    with pytest.raises(ConfigError):
        OutputConfig.from_dict({})
    with pytest.raises(ConfigError, match="required"):
        OutputConfig.from_dict({"data_stream_name": ""})


@pytest.mark.parametrize("precision", [-1, 10])
def test_time_precision_bounds(precision):
    with pytest.raises(ConfigError, match="time_precision"):
        OutputConfig(data_stream_name="a", time_precision=precision)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("ES_HOSTS", "http://es1:9200,http://es2:9200")
    monkeypatch.setenv("ES_DATA_STREAM_NAME", "app-logs")
    monkeypatch.setenv("ES_TIME_PRECISION", "6")
    monkeypatch.setenv("ES_USERNAME", "elastic")

    cfg = Settings().to_output_config()

    assert cfg.hosts == ["http://es1:9200", "http://es2:9200"]
    assert cfg.data_stream_name == "app-logs"
    assert cfg.time_precision == 6
    assert cfg.username == "elastic"


def test_settings_explicit_name_wins(monkeypatch):
    monkeypatch.setenv("ES_DATA_STREAM_NAME", "from-env")
    assert Settings().to_output_config("explicit").data_stream_name == "explicit"


def test_settings_without_name(monkeypatch):
    monkeypatch.delenv("ES_DATA_STREAM_NAME", raising=False)
    with pytest.raises(ConfigError, match="ES_DATA_STREAM_NAME"):
        Settings().to_output_config()
