"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from data_explorer.config import DEFAULT_CONFIG_PATH, ExplorerConfig, load_config


def test_defaults_when_default_file_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config == ExplorerConfig()
    assert config.port == 3001
    assert config.backend_url == "http://127.0.0.1:3001"
    assert config.timeout_sec == 30.0


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_full_file(tmp_path):
    path = tmp_path / "explorer.yaml"
    path.write_text(
        "\n".join(
            [
                "data_dir: datasets",
                "datasets: [sales.json, cities.csv]",
                "server:",
                "  host: 0.0.0.0",
                "  port: 4000",
                "relay:",
                "  timeout_sec: 2.5",
                '  protocol_version: "2025-06-18"',
                "  host_name: TestHost",
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.data_dir == Path("datasets")
    assert config.datasets == ("sales.json", "cities.csv")
    assert (config.host, config.port) == ("0.0.0.0", 4000)
    # backend URL follows the server address unless set explicitly
    assert config.backend_url == "http://0.0.0.0:4000"
    assert config.timeout_sec == 2.5
    assert config.protocol_version == "2025-06-18"
    assert config.host_name == "TestHost"
    assert config.dataset_paths() == [Path("datasets/sales.json"), Path("datasets/cities.csv")]


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "explorer.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)


def test_bad_section_rejected(tmp_path):
    path = tmp_path / "explorer.yaml"
    path.write_text("server: 3001\n", encoding="utf-8")
    with pytest.raises(ValueError, match="server"):
        load_config(path)


def test_overrides_ignore_none():
    config = ExplorerConfig().with_overrides(port=9000, host=None)
    assert config.port == 9000
    assert config.host == "127.0.0.1"


def test_dataset_paths_discovers_files(data_dir):
    config = ExplorerConfig(data_dir=data_dir)
    assert [p.name for p in config.dataset_paths()] == ["cities.csv", "sales.json"]


def test_shipped_config_lists_sample_datasets():
    shipped = Path(__file__).resolve().parent.parent / DEFAULT_CONFIG_PATH
    config = load_config(shipped)
    assert config.datasets == ("movies.json", "sales.json", "weather.json")
