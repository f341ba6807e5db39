"""Unit tests for dumploader.config -- Settings and the layered YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from dumploader.config.loader import _deep_merge, load_config
from dumploader.config.settings import Settings
from dumploader.utils.errors import ConfigurationError

_ENV_VARS = (
    "DATABASE_PATH",
    "CREATE_SCHEMA",
    "BATCH_CAPACITY",
    "LOAD_CONCURRENCY",
    "HTTP_TIMEOUT",
    "APP_ENV",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from the caller's environment and any local .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _write_yaml(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.database_path == "data/discogs.db"
        assert settings.create_schema is True
        assert settings.batch_capacity == 100
        assert settings.load_concurrency == 1
        assert settings.http_timeout == 60.0
        assert settings.log_level == "INFO"

    def test_environment_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BATCH_CAPACITY", "500")
        monkeypatch.setenv("CREATE_SCHEMA", "false")

        settings = Settings()

        assert settings.batch_capacity == 500
        assert settings.create_schema is False

    def test_dotenv_file_is_read(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("DATABASE_PATH=/srv/catalog.db\n")

        assert Settings().database_path == "/srv/catalog.db"


class TestLoadConfig:
    def test_missing_file_falls_back_to_settings_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"))

        assert config["storage"] == {"database_path": "data/discogs.db", "create_schema": True}
        assert config["load"] == {"batch_capacity": 100, "concurrency": 1, "http_timeout": 60.0}
        assert config["logging"]["level"] == "INFO"

    def test_yaml_overrides_defaults(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "load:\n  batch_capacity: 250\napp:\n  name: dumploader\n")

        config = load_config(path)

        assert config["load"]["batch_capacity"] == 250
        # Keys the file leaves out keep their defaults.
        assert config["load"]["concurrency"] == 1
        assert config["app"]["name"] == "dumploader"

    def test_environment_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write_yaml(tmp_path, "load:\n  batch_capacity: 250\n  concurrency: 4\n")
        monkeypatch.setenv("BATCH_CAPACITY", "7")

        config = load_config(path)

        assert config["load"]["batch_capacity"] == 7
        assert config["load"]["concurrency"] == 4

    def test_explicit_settings_object(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "storage:\n  database_path: from-yaml.db\n")

        config = load_config(path, settings=Settings(database_path="explicit.db"))

        assert config["storage"]["database_path"] == "explicit.db"

    def test_empty_yaml_file(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "")

        assert load_config(path)["load"]["batch_capacity"] == 100

    def test_malformed_yaml_raises_configuration_error(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "load: [\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_yaml_raises_configuration_error(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "- storage\n- load\n")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config(path)

    def test_bad_environment_value_raises_configuration_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BATCH_CAPACITY", "lots")

        with pytest.raises(ConfigurationError, match="Invalid environment setting"):
            load_config(str(tmp_path / "absent.yaml"))


class TestDeepMerge:
    def test_nested_dicts_are_merged(self) -> None:
        base = {"load": {"batch_capacity": 100}, "app": {"name": "x"}}

        _deep_merge(base, {"load": {"concurrency": 2}})

        assert base == {"load": {"batch_capacity": 100, "concurrency": 2}, "app": {"name": "x"}}

    def test_scalars_replace_dicts(self) -> None:
        base = {"load": {"batch_capacity": 100}}

        _deep_merge(base, {"load": None})

        assert base == {"load": None}
