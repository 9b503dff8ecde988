"""
Configuration — loads settings from .edlkit.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "session_file": ".edlkit/session.json",
    "log_dir": ".edlkit/logs",
    "metrics": True,
    "metrics_dir": ".edlkit",
    "persist_partial": True,
    "validate_syntax": True,
    "snippet_length": 120,
    "max_content_chars": 800,
}

# Config file search locations
_CONFIG_FILENAMES = [".edlkit.yaml", ".edlkit.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """edlkit configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .edlkit.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() in ("1", "true", "yes")
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.SESSION_FILE = _get("EDLKIT_SESSION_FILE", "session_file",
                                 _DEFAULTS["session_file"])
        self.LOG_DIR = _get("EDLKIT_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

        self.METRICS = _get_bool("EDLKIT_METRICS", "metrics", _DEFAULTS["metrics"])
        self.METRICS_DIR = _get("EDLKIT_METRICS_DIR", "metrics_dir",
                                _DEFAULTS["metrics_dir"])

        # Execution behaviour
        self.PERSIST_PARTIAL = _get_bool("EDLKIT_PERSIST_PARTIAL",
                                         "persist_partial",
                                         _DEFAULTS["persist_partial"])
        self.VALIDATE_SYNTAX = _get_bool("EDLKIT_VALIDATE_SYNTAX",
                                         "validate_syntax",
                                         _DEFAULTS["validate_syntax"])

        # Trace / preview abridging
        self.SNIPPET_LENGTH = _get("EDLKIT_SNIPPET_LENGTH", "snippet_length",
                                   _DEFAULTS["snippet_length"], cast=int)
        self.MAX_CONTENT_CHARS = _get("EDLKIT_MAX_CONTENT_CHARS",
                                      "max_content_chars",
                                      _DEFAULTS["max_content_chars"], cast=int)

    def executor_options(self) -> dict:
        """Keyword arguments for :class:`~edlkit.editing.executor.Executor`."""
        return {
            "persist_partial": self.PERSIST_PARTIAL,
            "validate_syntax": self.VALIDATE_SYNTAX,
            "snippet_length": self.SNIPPET_LENGTH,
            "max_content_chars": self.MAX_CONTENT_CHARS,
        }

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
