from pathlib import Path

import pytest
from pydantic import ValidationError

from mnemo.application.config import AppConfig, resolve_config
from mnemo.application.factory import get_subject_repository
from mnemo.infrastructure.repositories.memory import InMemorySubjectRepository
from mnemo.infrastructure.repositories.yaml_store import YamlSubjectRepository


def test_defaults(mock_home):
    config = resolve_config()
    assert config.backend == "yaml"
    assert config.data_file == (mock_home / ".config/mnemo/subjects.yaml").resolve()
    assert config.timezone is None
    assert config.tzinfo is None


def test_env_overrides(mock_home, monkeypatch, tmp_path):
    monkeypatch.setenv("MNEMO_BACKEND", "memory")
    monkeypatch.setenv("MNEMO_DATA_FILE", str(tmp_path / "x.yaml"))

    config = resolve_config()

    assert config.backend == "memory"
    assert config.data_file == (tmp_path / "x.yaml").resolve()


def test_toml_file_is_read(mock_home):
    cfg = mock_home / ".config/mnemo/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('backend = "memory"\nport = 9100\n', encoding="utf-8")

    config = resolve_config()

    assert config.backend == "memory"
    assert config.port == 9100


def test_precedence_cli_over_env_over_file(mock_home, monkeypatch):
    (mock_home / ".mnemo.toml").write_text('port = 9100\nhost = "0.0.0.0"\n', encoding="utf-8")
    monkeypatch.setenv("MNEMO_PORT", "9200")

    config = resolve_config({"port": 9300, "host": None})

    assert config.port == 9300
    assert config.host == "0.0.0.0"


def test_data_file_is_expanded(mock_home):
    config = resolve_config({"data_file": "~/notes/subjects.yaml"})
    assert config.data_file == (mock_home / "notes/subjects.yaml").resolve()


def test_unknown_timezone_rejected(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(timezone="Not/AZone")


def test_unknown_backend_rejected(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(backend="postgres")


def test_factory_selects_backend(mock_home, tmp_path):
    memory = get_subject_repository(resolve_config({"backend": "memory"}))
    assert isinstance(memory, InMemorySubjectRepository)

    data_file = tmp_path / "s.yaml"
    on_disk = get_subject_repository(resolve_config({"data_file": data_file}))
    assert isinstance(on_disk, YamlSubjectRepository)
    assert on_disk.path == Path(data_file).resolve()
