"""Shared test fixtures: Parquet files written once per session by data_factory."""

import pytest

import parquet_meta.config as config_module
from data_factory import seed_files


@pytest.fixture(autouse=True)
def config_file(tmp_path, monkeypatch):
    """Point the config module at a per-test path and clear env overrides."""
    config_path = tmp_path / "parquet-meta.yaml"
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)
    for env_key in config_module.ENV_VAR_MAP:
        monkeypatch.delenv(env_key, raising=False)
    return config_path


@pytest.fixture(scope="session")
def data_files(tmp_path_factory):
    return seed_files(tmp_path_factory.mktemp("data"))


@pytest.fixture(scope="session")
def orders_file(data_files):
    return data_files["orders"]


@pytest.fixture(scope="session")
def points_file(data_files):
    return data_files["points"]


@pytest.fixture(scope="session")
def events_file(data_files):
    return data_files["events"]
