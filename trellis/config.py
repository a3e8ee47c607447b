"""
Config system - layered configuration with a typed result.

Merge order (later overrides earlier):
1. ``TrellisConfig`` defaults
2. Config files (``<app_path>/trellis.yaml`` / ``trellis.json`` by default)
3. ``.env`` file (only ``TRELLIS_*`` keys)
4. Environment variables (``TRELLIS_*``)
5. Manual overrides
"""

from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union, get_args, get_origin
import json
import os

import yaml
from dotenv import dotenv_values

from .faults import ConfigError


@dataclass
class TrellisConfig:
    """
    Typed application configuration.

    Attributes:
        app_path: Application root directory
        template_root: Template directory, relative to ``app_path``
        controller_dir: Controller module directory, relative to ``app_path``
        default_layout: Layout wrapping every page unless a controller changes it
            (None: no layout)
        template_extension: Appended to extension-less template paths
        autoescape: HTML autoescaping in templates
        sandbox: Render templates in Jinja2's sandbox
        debug: Development mode
        log_level: Level of the ``trellis`` logger
        host: Bind host for ``Application.run``
        port: Bind port for ``Application.run``
        websockets: Accept JSON-over-WebSocket requests
        extra: Keys with no field of their own
    """

    app_path: str = "."
    template_root: str = "templates"
    controller_dir: str = "controllers"
    default_layout: Optional[str] = "@layout"
    template_extension: str = ".html"
    autoescape: bool = True
    sandbox: bool = False
    debug: bool = False
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    websockets: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _unwrap_optional(annotation: Any) -> tuple:
    """``Optional[str]`` -> (str, True); ``int`` -> (int, False)"""
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        return args[0], len(args) != len(get_args(annotation))
    return annotation, False


_FIELD_TYPES = {f.name: _unwrap_optional(f.type) for f in fields(TrellisConfig) if f.name != "extra"}


class ConfigLoader:
    """
    Loads and merges configuration for one application.

    Example:
        config = ConfigLoader.load("/srv/app", overrides={"debug": True}).to_config()
    """

    DEFAULT_FILES = ("trellis.yaml", "trellis.yml", "trellis.json")

    def __init__(self, app_path: str | Path = ".", env_prefix: str = "TRELLIS_"):
        self.app_path = Path(app_path)
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        app_path: str | Path = ".",
        *,
        paths: Optional[Iterable[str | Path]] = None,
        env_file: Optional[str | Path] = None,
        env_prefix: str = "TRELLIS_",
        overrides: Optional[Dict[str, Any]] = None,
        use_environ: bool = True,
    ) -> "ConfigLoader":
        """
        Load configuration from every source.

        Args:
            app_path: Application root (relative paths resolve against it)
            paths: Config files; defaults to the ``trellis.*`` files in ``app_path``
            env_file: ``.env`` file; defaults to ``<app_path>/.env`` if present
            env_prefix: Prefix for environment keys
            overrides: Manual overrides (highest precedence)
            use_environ: Read ``os.environ``

        Raises:
            ConfigError: If a config file cannot be parsed
        """
        loader = cls(app_path, env_prefix=env_prefix)

        if paths is None:
            paths = [loader.app_path / name for name in cls.DEFAULT_FILES]
        for path in paths:
            path = loader._resolve(path)
            if path.exists():
                loader._load_file(path)

        env_path = loader._resolve(env_file) if env_file else loader.app_path / ".env"
        if env_path.exists():
            loader._load_env(dotenv_values(env_path))

        if use_environ:
            loader._load_env(os.environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _resolve(self, path: str | Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.app_path / path

    def _load_file(self, path: Path) -> None:
        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        self._merge_dict(self.config_data, data)

    def _load_env(self, environ: Dict[str, Optional[str]]) -> None:
        for key, value in environ.items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str) -> None:
        """Convert TRELLIS_EXTRA__MAILER__HOST to nested dict."""
        parts = key[len(self.env_prefix):].lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        lowered = value.lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict) -> None:
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def to_config(self) -> TrellisConfig:
        """
        Build the typed config.

        Raises:
            ConfigError: If a known key has the wrong type
        """
        known: Dict[str, Any] = {"app_path": str(self.app_path)}
        extra: Dict[str, Any] = {}

        for key, value in self.config_data.items():
            if key == "extra" and isinstance(value, dict):
                extra.update(value)
            elif key in _FIELD_TYPES:
                known[key] = self._coerce(key, value)
            else:
                extra[key] = value

        return TrellisConfig(**known, extra=extra)

    def _coerce(self, key: str, value: Any) -> Any:
        expected, nullable = _FIELD_TYPES[key]

        if value is None and nullable:
            return None
        if expected is int and isinstance(value, str) and value.isdigit():
            return int(value)
        if expected is str and isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if expected is int and isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be int, got bool", key=key)
        if not isinstance(value, expected):
            raise ConfigError(
                f"Config key '{key}' must be {expected.__name__}, got {type(value).__name__}",
                key=key,
            )
        return value
