from pathlib import Path

import pytest
from pydantic import ValidationError

from recall.application.config import AppConfig, resolve_config
from recall.application.factory import get_progress_store
from recall.infrastructure.adapters import InMemoryProgressStore, JsonFileProgressStore


def test_defaults(mock_home):
    config = resolve_config()
    assert config.data_dir == (mock_home / ".local/share/recall").resolve()
    assert config.backend == "json"
    assert config.max_history == 1000
    assert config.learning_interval_days == 21
    assert config.shuffle_seed is None


def test_env_overrides(mock_home, monkeypatch, tmp_path):
    monkeypatch.setenv("RECALL_BACKEND", "memory")
    monkeypatch.setenv("RECALL_DATA_DIR", str(tmp_path / "elsewhere"))
    config = resolve_config()
    assert config.backend == "memory"
    assert config.data_dir == (tmp_path / "elsewhere").resolve()


def test_toml_file(mock_home):
    cfg = mock_home / ".config/recall/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('backend = "memory"\nmax_history = 50\n')

    config = resolve_config()

    assert config.backend == "memory"
    assert config.max_history == 50


def test_cli_overrides_beat_env_and_file(mock_home, monkeypatch):
    cfg = mock_home / ".config/recall/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text("max_history = 50\n")
    monkeypatch.setenv("RECALL_MAX_HISTORY", "70")

    assert resolve_config().max_history == 70
    assert resolve_config({"max_history": 90}).max_history == 90


def test_none_overrides_are_ignored(mock_home):
    config = resolve_config({"backend": None, "shuffle_seed": None})
    assert config.backend == "json"


def test_data_dir_expands_user(mock_home):
    config = AppConfig(data_dir="~/cards")
    assert config.data_dir == (mock_home / "cards").resolve()


@pytest.mark.parametrize("field, value", [("max_history", 0), ("backend", "sqlite")])
def test_invalid_values(mock_home, field, value):
    with pytest.raises(ValidationError):
        AppConfig(**{field: value})


# --- Factory ---


def test_factory_selects_json(mock_home, tmp_path):
    store = get_progress_store(AppConfig(data_dir=tmp_path, max_history=5))
    assert isinstance(store, JsonFileProgressStore)
    assert store.data_dir == Path(tmp_path).resolve()
    assert store.max_history == 5


def test_factory_selects_memory(mock_home):
    store = get_progress_store(AppConfig(backend="memory"))
    assert isinstance(store, InMemoryProgressStore)
    assert not isinstance(store, JsonFileProgressStore)
