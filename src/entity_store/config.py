"""Configuration management for entity-store using YAML files."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from entity_store.errors import ConfigError
from entity_store.mailer import AUTH_METHODS, EmailOptions, Mailer
from entity_store.modes import DEFAULT_TIMESTAMP, RunMode, make_logger, parse_mode
from entity_store.store import Store

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".entity-store"


class Config:
    """Configuration manager using YAML file storage.

    Local config lives in .entity-store/config.yaml under the working
    directory, global config in ~/.entity-store/config.yaml. Keys are dotted
    strings (``store.root``, ``email.host``); lookups try the local file
    first and fall back to the global one.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            use_global: If True, use global config only. If False, use local config with global fallback.
            config_dir: Custom directory to store config file (overrides use_global)
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
            self.is_global = use_global
        elif use_global:
            self.config_dir = self.global_dir()
            self.is_global = True
        else:
            self.config_dir = Path.cwd() / CONFIG_DIR_NAME
            self.is_global = False

        self.config_file = self.config_dir / "config.yaml"
        self._config: dict[str, Any] = self._read(self.config_file, strict=True)

        self._global_config: dict[str, Any] = {}
        if not self.is_global:
            self._global_config = self._read(self.global_dir() / "config.yaml", strict=False)

        logger.debug("Config initialized", config_file=str(self.config_file), is_global=self.is_global)

    @staticmethod
    def global_dir() -> Path:
        return Path.home() / CONFIG_DIR_NAME

    def _read(self, path: Path, strict: bool) -> dict[str, Any]:
        """Read a config file, returning an empty mapping if it does not exist.

        Args:
            path: File to read
            strict: Raise ConfigError on failure instead of logging a warning
        """
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            if not strict:
                logger.warning("Failed to load config", path=str(path), error=str(e))
                return {}
            logger.error("Failed to load config", path=str(path), error=str(e))
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

        if not isinstance(config, dict):
            if not strict:
                return {}
            raise ConfigError(f"Config file {path} must contain a mapping")

        logger.debug("Config loaded", path=str(path), keys=list(config.keys()))
        return config

    def _save(self) -> None:
        """Write the config to its YAML file, creating the directory if needed."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
            logger.debug("Config saved", config_file=str(self.config_file))
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save config", error=str(e))
            raise ConfigError(f"Failed to save config to {self.config_file}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, checking the local file before the global one."""
        if key in self._config:
            return self._config[key]
        if not self.is_global and key in self._global_config:
            return self._global_config[key]
        return default

    def set(self, key: str, value: str) -> None:
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def origin(self, key: str) -> str | None:
        """Which file a value comes from: ``"local"``, ``"global"``, or None when unset."""
        if key in self._config:
            return "global" if self.is_global else "local"
        if not self.is_global and key in self._global_config:
            return "global"
        return None

    def list(self) -> dict[str, Any]:
        """All settings; for local config, global values overridden by local ones."""
        if self.is_global:
            return self._config.copy()
        merged = self._global_config.copy()
        merged.update(self._config)
        return merged

    def section(self, prefix: str) -> dict[str, Any]:
        """Settings under a dotted prefix, with the prefix stripped.

        ``section("email")`` turns ``email.host`` into ``host``.
        """
        start = prefix.rstrip(".") + "."
        return {key[len(start) :]: value for key, value in self.list().items() if key.startswith(start)}

    @property
    def mode(self) -> RunMode:
        try:
            return parse_mode(self.get("mode"))
        except ValueError as e:
            raise ConfigError(str(e)) from e


def get_config(use_global: bool = False) -> Config:
    """Get a configuration instance.

    Args:
        use_global: If True, return global config. If False, return local config with global fallback.
    """
    return Config(use_global=use_global)


def parse_pairs(value: str, separator: str = ":") -> dict[str, str]:
    """Parse ``key:value,key:value`` strings."""
    pairs = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        if separator not in item:
            raise ConfigError(f"Expected key{separator}value, got {item!r}")
        key, val = item.split(separator, 1)
        pairs[key.strip()] = val.strip()
    return pairs


BACKENDS = ("yaml", "memory")


def check_setting(key: str, value: str) -> None:
    """Validate a value for one of the keys the store reads.

    Unknown keys are accepted as they are.

    Raises:
        ConfigError: If the value would fail when the store or mailer is opened
    """
    if key == "mode":
        try:
            parse_mode(value)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    elif key == "store.backend":
        if value not in BACKENDS:
            raise ConfigError(f"Unknown backend {value!r}, expected one of: {', '.join(BACKENDS)}")
    elif key.startswith("relations."):
        class_name = key[len("relations.") :]
        for field, target in parse_pairs(value).items():
            if not field or not target:
                raise ConfigError(f"Expected field:target, got {value!r}")
            if target == class_name:
                raise ConfigError(f"{class_name!r} cannot relate to itself through {field!r}")
    elif key == "email.port":
        if not value.isdigit():
            raise ConfigError(f"email.port must be a number, got {value!r}")
    elif key == "email.auth_type":
        if value not in AUTH_METHODS:
            raise ConfigError(f"Unknown auth type {value!r}, expected one of: {', '.join(AUTH_METHODS)}")


def make_config_logger(config: Config, mode: RunMode | None = None) -> Any:
    """Logger for the configured run mode and timestamp format."""
    return make_logger(mode or config.mode, timestamp_format=config.get("log.timestamp", DEFAULT_TIMESTAMP))


def open_store(config: Config, mode: RunMode | None = None) -> Store:
    """Build a store, and register the configured relations, from configuration.

    Args:
        config: Configuration to read ``store.*``, ``relations.*`` and ``mode`` from
        mode: Run mode overriding the configured one
    """
    mode = mode or config.mode
    backend = config.get("store.backend", "yaml")
    root = config.get("store.root") or str(config.config_dir / "data")

    try:
        store = Store(backend=backend, root=root, mode=mode, logger=make_config_logger(config, mode))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    for class_name, declared in config.section("relations").items():
        store.create_class(class_name, relations=parse_pairs(str(declared)))

    logger.debug("Store opened from config", backend=backend, root=root, mode=mode.value)
    return store


def open_mailer(config: Config, mode: RunMode | None = None) -> Mailer:
    """Build a mailer from the ``email.*`` settings."""
    settings = config.section("email")
    if "port" in settings:
        try:
            settings["port"] = int(settings["port"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"email.port must be a number, got {settings['port']!r}") from e
    if isinstance(settings.get("bcc"), str):
        settings["bcc"] = [address.strip() for address in settings["bcc"].split(",") if address.strip()]

    try:
        options = EmailOptions(**settings)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid email settings: {e}") from e

    return Mailer(options, logger=make_config_logger(config, mode))
