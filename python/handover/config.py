"""Configuration loading.

Priority: environment variables > local .handover/config.json >
global ~/.handover/config.json > defaults.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields

from .store.files import read_record, write_record
from .store.scope import GLOBAL_DIR, HANDOVER_DIR

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
GLOBAL_CONFIG_PATH = os.path.join(GLOBAL_DIR, CONFIG_FILE)

# config.json keys use the camelCase names of earlier releases
_FILE_KEYS = {
    "api_key": "apiKey",
    "model": "model",
    "data_dir": "dataDir",
    "max_tokens": "maxTokens",
    "temperature": "temperature",
}

_ENV_KEYS = {
    "api_key": "ANTHROPIC_API_KEY",
    "model": "HANDOVER_MODEL",
    "data_dir": "HANDOVER_DATA_DIR",
    "max_tokens": "HANDOVER_MAX_TOKENS",
    "temperature": "HANDOVER_TEMPERATURE",
}


@dataclass
class HandoverConfig:
    api_key: str | None = None
    model: str = "claude-sonnet-4-20250514"
    data_dir: str = HANDOVER_DIR
    max_tokens: int = 4096
    temperature: float = 0.7


_FIELD_TYPES = {f.name: f.type for f in fields(HandoverConfig)}


def find_local_config_path(cwd: str | None = None) -> str:
    """Walk up from cwd looking for .handover/config.json."""
    start = os.path.abspath(cwd or os.getcwd())
    current = start

    while True:
        candidate = os.path.join(current, HANDOVER_DIR, CONFIG_FILE)
        if os.path.exists(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    return os.path.join(start, HANDOVER_DIR, CONFIG_FILE)


def _coerce(name: str, value: object) -> object:
    if name == "max_tokens":
        return int(value)  # type: ignore[arg-type]
    if name == "temperature":
        return float(value)  # type: ignore[arg-type]
    return value


def _read_config_file(path: str) -> dict:
    data = read_record(path)
    if not isinstance(data, dict):
        return {}
    values: dict = {}
    for name, key in _FILE_KEYS.items():
        if key in data and data[key] is not None:
            try:
                values[name] = _coerce(name, data[key])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid %s in %s", key, path)
    return values


def _read_env() -> dict:
    values: dict = {}
    for name, var in _ENV_KEYS.items():
        raw = os.environ.get(var)
        if not raw:
            continue
        try:
            values[name] = _coerce(name, raw)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", var, raw)
    return values


def load_config(cwd: str | None = None) -> HandoverConfig:
    merged: dict = {}
    merged.update(_read_config_file(GLOBAL_CONFIG_PATH))
    merged.update(_read_config_file(find_local_config_path(cwd)))
    merged.update(_read_env())
    return HandoverConfig(**merged)


def save_config(values: dict, global_: bool = False, cwd: str | None = None) -> None:
    """Merge ``values`` (snake_case keys) into a config file."""
    unknown = set(values) - set(_FILE_KEYS)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    path = GLOBAL_CONFIG_PATH if global_ else find_local_config_path(cwd)
    existing = read_record(path)
    data = existing if isinstance(existing, dict) else {}
    for name, value in values.items():
        data[_FILE_KEYS[name]] = _coerce(name, value)
    write_record(path, data)


def get_config_value(key: str, cwd: str | None = None) -> object:
    if key not in _FIELD_TYPES:
        raise ValueError(f"Unknown config key: {key}")
    return asdict(load_config(cwd))[key]


def set_config_value(key: str, value: object, global_: bool = False, cwd: str | None = None) -> None:
    save_config({key: value}, global_=global_, cwd=cwd)
