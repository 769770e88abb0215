"""Locating and loading the YAML keyword-rule files, plus the lazy holder
that keeps the loaded rules and the database engine swappable in tests."""

import os
from pathlib import Path
from typing import Callable, Generic, TypeVar

import yaml

T = TypeVar("T")

CONFIG_SUFFIX = ".yaml"


def find_config_path(
    config_name: str | None,
    config_dir: Path,
    default_name: str = "prod",
    env_var: str | None = None,
) -> Path:
    """Path of the rule file named config_name in config_dir.

    Without a name, env_var (DRIFT_RULES_CONFIG for the keyword rules) picks
    it, then default_name. "dev" and "dev.yaml" resolve to the same file.

    Raises:
        FileNotFoundError: If no such rule file exists
    """
    name = config_name
    if name is None and env_var:
        name = os.environ.get(env_var)
    name = name or default_name
    if name.endswith(CONFIG_SUFFIX):
        name = name[: -len(CONFIG_SUFFIX)]

    path = config_dir / f"{name}{CONFIG_SUFFIX}"
    if not path.exists():
        raise FileNotFoundError(f"Rule config {name!r} not found in {config_dir}")
    return path


def load_yaml(path: Path) -> dict:
    """Top-level mapping of a rule file; {} for an empty file.

    Raises:
        ValueError: If the document is a list or scalar
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


class ConfigSingleton(Generic[T]):
    """Holds one process-wide value built on first use.

    keyword_rules.load_rules keeps its RuleConfig here and common.db its
    Engine; tests set() a fixture value and reset() afterwards.
    """

    def __init__(self, loader: Callable[[], T] | None = None):
        self._value: T | None = None
        self._loader = loader

    def get(self) -> T:
        if self._value is None:
            if self._loader is None:
                raise RuntimeError("No value set and no loader configured")
            self._value = self._loader()
        return self._value

    def peek(self) -> T | None:
        """The held value, or None if nothing has been loaded or set."""
        return self._value

    def set(self, value: T) -> None:
        self._value = value

    def reset(self) -> None:
        self._value = None
