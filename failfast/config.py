from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml


GLOBAL_CONFIG_NAME = "failfast.global.yaml"
LOCAL_CONFIG_NAME = "failfast.yaml"
ENV_PREFIX = "FAILFAST_"
ENV_SEPARATOR = "__"
ROOT_MARKERS = ("pyproject.toml", ".git")


@dataclass
class ClusterConfig:
    name: str
    url: str
    token: str | None
    namespace: str | None
    verify_tls: bool


@dataclass
class Settings:
    request_timeout_seconds: int
    user_agent: str
    page_size: int


@dataclass
class WaitingConfig:
    timeout_seconds: float
    poll_interval_seconds: float


@dataclass
class Config:
    clusters: list[ClusterConfig]
    settings: Settings
    waiting: WaitingConfig


def find_project_root(start: Path | None = None) -> Path:
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if any((directory / marker).exists() for marker in ROOT_MARKERS):
            return directory
    return current


def load_layers(
    root: Path,
    local_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Merges configuration sources, later ones winning:
    the shared file, the user-local file, FAILFAST_* environment variables, then explicit overrides.
    """
    merged: dict[str, Any] = {}
    _merge(merged, _read_yaml(root / GLOBAL_CONFIG_NAME))
    _merge(merged, _read_yaml(local_path or root / LOCAL_CONFIG_NAME))
    _merge(merged, _from_environment(os.environ if environ is None else environ))
    for key, value in (overrides or {}).items():
        _set_dotted(merged, key.split("."), value)
    return merged


def load_config(
    local_path: str | None = None,
    overrides: Mapping[str, str] | None = None,
    root: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    project_root = root or find_project_root()
    path = Path(local_path) if local_path else None
    if path is not None and not path.exists():
        raise ValueError(f"Config file not found: {path}")
    data = _expand_env(load_layers(project_root, path, environ, overrides))
    return parse_config(data)


def parse_config(data: Any) -> Config:
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")

    settings_raw = _require_dict(data.get("settings"), "settings")
    settings = Settings(
        request_timeout_seconds=int(settings_raw.get("request_timeout_seconds", 20)),
        user_agent=str(settings_raw.get("user_agent", "failfast/0.1")),
        page_size=int(settings_raw.get("page_size", 500)),
    )

    waiting_raw = _require_dict(data.get("waiting"), "waiting")
    waiting = WaitingConfig(
        timeout_seconds=float(waiting_raw.get("timeout_seconds", 300)),
        poll_interval_seconds=float(waiting_raw.get("poll_interval_seconds", 5)),
    )
    if waiting.poll_interval_seconds <= 0:
        raise ValueError("waiting.poll_interval_seconds must be > 0")

    return Config(
        clusters=_load_clusters(data.get("clusters")),
        settings=settings,
        waiting=waiting,
    )


def _load_clusters(value: Any) -> list[ClusterConfig]:
    if value is None:
        return []
    if isinstance(value, dict):
        # environment and --set overrides address clusters by name
        entries = [{"name": name, **_require_dict(entry, f"clusters.{name}")} for name, entry in value.items()]
    elif isinstance(value, list):
        entries = value
    else:
        raise ValueError("clusters must be a list or mapping")

    clusters: list[ClusterConfig] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError("clusters entries must be mappings")
        url = entry.get("url")
        if not url:
            raise ValueError("clusters entries must include url")
        clusters.append(
            ClusterConfig(
                name=str(entry.get("name") or f"cluster-{index}"),
                url=str(url),
                token=_optional_str(entry.get("token")),
                namespace=_optional_str(entry.get("namespace")),
                verify_tls=_parse_bool(entry.get("verify_tls", True), "clusters.verify_tls"),
            )
        )
    return clusters


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        logging.getLogger(__name__).warning("Unable to read config from %s: %s", path, exc)
        return {}
    return _require_dict(raw, str(path))


def _from_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in key[len(ENV_PREFIX):].split(ENV_SEPARATOR) if part]
        if path:
            _set_dotted(result, path, value)
    return result


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        current = target.get(key)
        if key == "clusters" and isinstance(current, list) and isinstance(value, dict):
            current = _clusters_by_name(current)
            target[key] = current
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            target[key] = value


def _set_dotted(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for part in path[:-1]:
        child = node.get(part)
        if part == "clusters" and isinstance(child, list):
            child = _clusters_by_name(child)
            node[part] = child
        elif not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[path[-1]] = value


def _clusters_by_name(entries: list[Any]) -> dict[str, Any]:
    by_name: dict[str, Any] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError("clusters entries must be mappings")
        # environment paths are lower-cased, so names are matched case-insensitively
        by_name[str(entry.get("name") or f"cluster-{index}").lower()] = entry
    return by_name


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "yes", "on", "1"}:
            return True
        if normalized in {"false", "no", "off", "0"}:
            return False
    raise ValueError(f"{name} must be a boolean")


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: _expand_env(val) for key, val in value.items()}
    return value


def _require_dict(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be a mapping")
    return value


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    text = str(value)
    if "${" in text:
        # unset environment reference left by expandvars
        return None
    return text
