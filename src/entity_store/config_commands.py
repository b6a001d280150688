"""Configuration commands for entity store CLI."""

from cyclopts import App

from entity_store.config import check_setting, get_config, parse_pairs
from entity_store.errors import ConfigError
from entity_store.modes import DEFAULT_TIMESTAMP

config_app = App(name="config", help="Manage configuration")


def _scope(global_: bool) -> str:
    return "global" if global_ else "local"


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Set a configuration setting.

    Values for the keys the store reads (mode, store.backend, relations.*,
    email.port, email.auth_type) are checked before anything is written.

    Args:
        key: Configuration key, e.g. store.root or relations.article
        value: Configuration value
        global_: If True, set in global config. If False, set in local config.
    """
    try:
        check_setting(key, value)
    except ConfigError as e:
        print(f"Not setting {key}: {e}")
        return

    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {value} ({_scope(global_)})")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Unset a configuration setting."""
    config = get_config(use_global=global_)
    if config.origin(key) != _scope(global_):
        print(f"{key} is not set in {_scope(global_)} config")
        return

    config.unset(key)
    print(f"Unset {key} ({_scope(global_)})")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Get a configuration setting and the file it comes from."""
    config = get_config(use_global=global_)
    value = config.get(key)
    if value is None:
        print(f"{key} is not set")
    else:
        print(f"{key} = {value} ({config.origin(key)})")


@config_app.command(name="list")
def list_config(global_: bool = False) -> None:
    """List all configuration settings, with global values under local ones."""
    config = get_config(use_global=global_)
    settings = config.list()

    if not settings:
        print(f"No {_scope(global_)} configuration settings")
        return

    print(f"{'Global' if global_ else 'Configuration'} settings:\n")
    for key, value in settings.items():
        print(f"{key} = {value} ({config.origin(key)})")


@config_app.command
def show() -> None:
    """Show the store and run mode the other commands would use."""
    config = get_config()
    try:
        mode = config.mode
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        return

    print(f"mode: {mode.value}")
    print(f"timestamps: {config.get('log.timestamp', DEFAULT_TIMESTAMP)}")
    print(f"backend: {config.get('store.backend', 'yaml')}")
    print(f"root: {config.get('store.root') or config.config_dir / 'data'}")

    relations = config.section("relations")
    if not relations:
        print("relations: none")
        return

    print("relations:")
    for class_name, declared in relations.items():
        try:
            pairs = parse_pairs(str(declared))
        except ConfigError as e:
            print(f"  {class_name}: invalid ({e})")
            continue
        for field, target in pairs.items():
            print(f"  {class_name}.{field} -> {target}")
