"""Tests for the inspo config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from inspo.config import (
    DEFAULT_DB_PATH,
    ConfigError,
    InspoConfig,
    load_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")


def _load(tmp_path: Path, global_cfg: Path | None = None) -> InspoConfig:
    return load_config(
        project_dir=tmp_path,
        global_config_path=global_cfg or tmp_path / "nonexistent" / "config.yaml",
    )


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = _load(tmp_path)

    assert cfg.database.path == DEFAULT_DB_PATH
    assert cfg.service.latency_ms == 0
    assert cfg.metadata.timeout == 10.0
    assert cfg.metadata.max_redirects == 3
    assert cfg.metadata.enrich_model is None
    assert cfg.logging.level == "WARNING"


def test_load_config_uses_cwd_by_default(tmp_path: Path) -> None:
    """project_dir defaults to the working directory (conftest chdirs to tmp_path)."""
    _write_yaml(tmp_path / "inspo.yaml", {"service": {"latency_ms": 40}})
    assert load_config().service.latency_ms == 40


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    """Global config overrides hardcoded defaults."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"metadata": {"timeout": 2.5}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.metadata.timeout == 2.5
    # Other defaults unchanged
    assert cfg.metadata.max_redirects == 3


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    assert _load(tmp_path, global_cfg).service.latency_ms == 0


def test_load_config_null_section(tmp_path: Path) -> None:
    """A section present but empty keeps its defaults."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("service:\nmetadata:\n", encoding="utf-8")

    cfg = _load(tmp_path, global_cfg)
    assert cfg.service.latency_ms == 0
    assert cfg.metadata.timeout == 10.0


def test_load_config_database_path_expanded(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"database": {"path": "~/designs/inspo.db"}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.database.path == Path.home() / "designs" / "inspo.db"


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    """Per-project inspo.yaml overrides global config."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"metadata": {"enrich_model": "openai/gpt-4o-mini"}})
    _write_yaml(tmp_path / "inspo.yaml", {"metadata": {"enrich_model": "ollama/llama3"}})

    assert _load(tmp_path, global_cfg).metadata.enrich_model == "ollama/llama3"


def test_load_config_project_partial_override(tmp_path: Path) -> None:
    """Per-project can override a single field; global values for other fields survive."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"metadata": {"timeout": 4, "max_redirects": 1}})
    _write_yaml(tmp_path / "inspo.yaml", {"metadata": {"timeout": 8}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.metadata.timeout == 8.0
    assert cfg.metadata.max_redirects == 1  # global value preserved


def test_load_config_log_level_normalised(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "inspo.yaml", {"logging": {"level": "debug"}})
    assert _load(tmp_path).logging.level == "DEBUG"


# ---------------------------------------------------------------------------
# Range validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data, match",
    [
        ({"service": {"latency_ms": -1}}, "latency_ms"),
        ({"metadata": {"timeout": 0}}, "timeout"),
        ({"metadata": {"max_redirects": -2}}, "max_redirects"),
        ({"logging": {"level": "LOUD"}}, "logging.level"),
    ],
)
def test_out_of_range_values_raise(tmp_path: Path, data: dict, match: str) -> None:
    _write_yaml(tmp_path / "inspo.yaml", data)
    with pytest.raises(ConfigError, match=match):
        _load(tmp_path)


@pytest.mark.parametrize(
    "data, match",
    [
        ({"service": {"latency_ms": "fast"}}, "service.latency_ms must be an integer"),
        ({"metadata": {"timeout": "soon"}}, "metadata.timeout must be a number"),
        ({"metadata": {"max_redirects": [1, 2]}}, "metadata.max_redirects must be an integer"),
    ],
)
def test_non_numeric_values_raise_config_error(tmp_path: Path, data: dict, match: str) -> None:
    _write_yaml(tmp_path / "inspo.yaml", data)
    with pytest.raises(ConfigError, match=match):
        _load(tmp_path)


def test_config_error_is_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


# ---------------------------------------------------------------------------
# API key detection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "OPENAI_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    """Global config containing API key-like field names raises ConfigError."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path, global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    """Nested API key-like field also raises ConfigError."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"metadata": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path, global_cfg)


def test_project_config_rejects_api_key_fields(tmp_path: Path) -> None:
    """Per-project inspo.yaml is checked too; it often lives in a shared folder."""
    _write_yaml(tmp_path / "inspo.yaml", {"metadata": {"openai_api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="openai_api_key"):
        _load(tmp_path)


# ---------------------------------------------------------------------------
# Unknown key warnings
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    """Unknown top-level key in config emits UserWarning (not error)."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = _load(tmp_path, global_cfg)

    assert any("unknown_section" in str(w.message) for w in caught)
    # Should still return a valid config
    assert cfg.metadata.timeout == 10.0


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_var_db_path_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "inspo.yaml", {"database": {"path": str(tmp_path / "file.db")}})
    monkeypatch.setenv("INSPO_DB_PATH", str(tmp_path / "env.db"))

    assert _load(tmp_path).database.path == tmp_path / "env.db"


def test_env_var_latency_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "inspo.yaml", {"service": {"latency_ms": 10}})
    monkeypatch.setenv("INSPO_LATENCY_MS", "250")

    assert _load(tmp_path).service.latency_ms == 250


def test_env_var_latency_not_integer(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSPO_LATENCY_MS", "fast")
    with pytest.raises(ConfigError, match="INSPO_LATENCY_MS"):
        _load(tmp_path)


def test_env_var_negative_latency_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSPO_LATENCY_MS", "-5")
    with pytest.raises(ConfigError, match="latency_ms"):
        _load(tmp_path)


def test_env_var_enrich_model_and_log_level(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSPO_ENRICH_MODEL", "anthropic/claude-3-5-haiku-latest")
    monkeypatch.setenv("INSPO_LOG_LEVEL", "info")

    cfg = _load(tmp_path)
    assert cfg.metadata.enrich_model == "anthropic/claude-3-5-haiku-latest"
    assert cfg.logging.level == "INFO"


def test_env_var_absent_does_not_override(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "inspo.yaml", {"service": {"latency_ms": 10}})
    assert _load(tmp_path).service.latency_ms == 10


# ---------------------------------------------------------------------------
# yaml.safe_load enforcement (regression guard)
# ---------------------------------------------------------------------------


def test_config_does_not_execute_yaml_load(tmp_path: Path) -> None:
    """Config loader uses safe_load: malicious YAML constructs are not executed."""
    evil_yaml = "!!python/object/apply:os.system ['echo pwned']\n"
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(evil_yaml, encoding="utf-8")

    with pytest.raises(yaml.YAMLError):
        _load(tmp_path, global_cfg)
