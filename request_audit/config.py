"""Configuration module — frozen dataclass loaded from YAML and environment variables."""

import logging
import os
from dataclasses import dataclass, fields, replace

import yaml

logger = logging.getLogger(__name__)

REQUEST_LOG_SUBDIR = "requests"

# env var -> (field name, multiplier)
_ENV_FIELDS = {
    "REQUEST_LOG_MAX_SIZE": ("max_file_size_bytes", 1024 * 1024),
    "REQUEST_LOG_MAX_RECORDS": ("max_records", 1),
    "REQUEST_LOG_MAX_AGE": ("max_age_days", 1),
    "REQUEST_LOG_MAX_BACKUPS": ("max_backups", 1),
    "REQUEST_LOG_COMPRESS_AGE": ("compress_age_days", 1),
}


@dataclass(frozen=True)
class Config:
    log_dir: str = ""
    max_file_size_bytes: int = 100 * 1024 * 1024  # 100 MB
    max_records: int = 0
    max_age_days: int = 30
    max_backups: int = 10
    compress_age_days: int = 1

    @property
    def enabled(self) -> bool:
        return bool(self.log_dir)

    @property
    def request_log_dir(self) -> str:
        return os.path.join(self.log_dir, REQUEST_LOG_SUBDIR)


def _parse_int(name: str, raw) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid value for %s: %r", name, raw)
        return None


def load_yaml_config(path: str | None) -> dict:
    """Load the ``request_log`` section of a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}

    section = data.get("request_log", {}) if isinstance(data, dict) else {}
    if not isinstance(section, dict):
        logger.warning("Ignoring non-mapping request_log section in %s", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return section


def _apply_yaml(config: Config, section: dict) -> Config:
    known = {f.name for f in fields(Config)}
    overrides = {}
    for key, value in section.items():
        if key not in known:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        if key == "log_dir":
            overrides[key] = str(value or "")
            continue
        parsed = _parse_int(key, value)
        if parsed is not None:
            overrides[key] = parsed
    return replace(config, **overrides)


def _apply_env(config: Config) -> Config:
    overrides = {}
    if "LOG_DIR" in os.environ:
        overrides["log_dir"] = os.environ["LOG_DIR"]

    for env_name, (field_name, multiplier) in _ENV_FIELDS.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        parsed = _parse_int(env_name, raw)
        if parsed is not None:
            overrides[field_name] = parsed * multiplier

    # REQUEST_LOG_MAX_SIZE_BYTES takes precedence over REQUEST_LOG_MAX_SIZE
    raw_bytes = os.environ.get("REQUEST_LOG_MAX_SIZE_BYTES")
    if raw_bytes:
        parsed = _parse_int("REQUEST_LOG_MAX_SIZE_BYTES", raw_bytes)
        if parsed is not None:
            overrides["max_file_size_bytes"] = parsed

    return replace(config, **overrides)


def _clamp(config: Config) -> Config:
    # negative thresholds mean "disabled", same as zero
    overrides = {
        f.name: 0
        for f in fields(Config)
        if f.name != "log_dir" and getattr(config, f.name) < 0
    }
    return replace(config, **overrides) if overrides else config


def load_config(yaml_path: str | None = None) -> Config:
    """Build Config from defaults, an optional YAML file, then environment variables."""
    path = yaml_path or os.environ.get("REQUEST_LOG_CONFIG")
    config = _apply_yaml(Config(), load_yaml_config(path))
    return _clamp(_apply_env(config))
