"""inspo configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (INSPO_DB_PATH, INSPO_LATENCY_MS,
                             INSPO_ENRICH_MODEL, INSPO_LOG_LEVEL)
  3. Per-project inspo.yaml  (in the working directory)
  4. Global ~/.inspo/config.yaml
  5. Hardcoded defaults

Config files must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".inspo"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "inspo.yaml"
DEFAULT_DB_PATH: Path = _GLOBAL_CONFIG_DIR / "inspo.db"

# Fields that suggest an API key; forbidden in config files.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["database", "service", "metadata", "logging"])

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """Local database location (inspo.yaml: database:)."""

    path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)


@dataclass
class ServiceCfg:
    """Service layer behaviour (inspo.yaml: service:).

    Attributes:
        latency_ms: Artificial delay before every service call, to mimic a
            networked backend during development. 0 disables it.
    """

    latency_ms: int = 0


@dataclass
class MetadataCfg:
    """Website metadata fetching (inspo.yaml: metadata:).

    Attributes:
        timeout: Seconds before a fetch is abandoned and degraded metadata
            is used instead.
        max_redirects: Redirects followed before the fetch fails.
        enrich_model: LiteLLM model used to fill a missing title/description.
            None disables enrichment.
    """

    timeout: float = 10.0
    max_redirects: int = 3
    enrich_model: str | None = None


@dataclass
class LoggingCfg:
    level: str = "WARNING"


@dataclass
class InspoConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    service: ServiceCfg = field(default_factory=ServiceCfg)
    metadata: MetadataCfg = field(default_factory=MetadataCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: InspoConfig) -> None:
    if cfg.service.latency_ms < 0:
        raise ConfigError(
            f"service.latency_ms must be >= 0, got {cfg.service.latency_ms}"
        )
    if cfg.metadata.timeout <= 0:
        raise ConfigError(f"metadata.timeout must be > 0, got {cfg.metadata.timeout}")
    if cfg.metadata.max_redirects < 0:
        raise ConfigError(
            f"metadata.max_redirects must be >= 0, got {cfg.metadata.max_redirects}"
        )
    if cfg.logging.level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
            f"got '{cfg.logging.level}'"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _number(key: str, value: Any, kind: type) -> Any:
    """Convert a YAML value to *kind*, raising ConfigError on junk."""
    try:
        return kind(value)
    except (TypeError, ValueError):
        noun = "an integer" if kind is int else "a number"
        raise ConfigError(f"{key} must be {noun}, got '{value}'") from None


def _cfg_from_dict(data: dict[str, Any]) -> InspoConfig:
    """Build an *InspoConfig* from a merged raw YAML dict."""
    cfg = InspoConfig()

    if "database" in data:
        d = data["database"] or {}
        if d.get("path"):
            cfg.database = DatabaseCfg(path=Path(str(d["path"])).expanduser())

    if "service" in data:
        s = data["service"] or {}
        cfg.service = ServiceCfg(
            latency_ms=_number(
                "service.latency_ms", s.get("latency_ms", cfg.service.latency_ms), int
            ),
        )

    if "metadata" in data:
        m = data["metadata"] or {}
        cfg.metadata = MetadataCfg(
            timeout=_number("metadata.timeout", m.get("timeout", cfg.metadata.timeout), float),
            max_redirects=_number(
                "metadata.max_redirects",
                m.get("max_redirects", cfg.metadata.max_redirects),
                int,
            ),
            enrich_model=m.get("enrich_model") or cfg.metadata.enrich_model,
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())

    return cfg


def _apply_env_overrides(cfg: InspoConfig) -> InspoConfig:
    """Apply INSPO_* environment variable overrides."""
    if path := os.environ.get("INSPO_DB_PATH"):
        cfg.database.path = Path(path).expanduser()
    if latency := os.environ.get("INSPO_LATENCY_MS"):
        try:
            cfg.service.latency_ms = int(latency)
        except ValueError:
            raise ConfigError(
                f"INSPO_LATENCY_MS must be an integer, got '{latency}'"
            ) from None
    if model := os.environ.get("INSPO_ENRICH_MODEL"):
        cfg.metadata.enrich_model = model
    if level := os.environ.get("INSPO_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> InspoConfig:
    """Load and return a merged *InspoConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *inspo.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file contains API-key-like fields or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    for path in (global_path, search_dir / _PROJECT_CONFIG_NAME):
        if path.exists():
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            _check_no_api_keys(raw, path)
            _warn_unknown_keys(raw, path)
            merged = _deep_merge(merged, raw)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg
