"""Configuration commands for the one-ring CLI."""

from cyclopts import App

from one_ring.config import BACKUPS_KEY, STORAGE_ROOT_KEY, get_config, resolve_storage_root

config_app = App(name="config", help="Manage configuration")

KNOWN_KEYS = {
    STORAGE_ROOT_KEY: "Directory holding project and task records",
    BACKUPS_KEY: "Directory receiving backup snapshots",
}


def _scope(global_: bool) -> str:
    return "global" if global_ else "local"


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Set a configuration setting.

    Args:
        key: Configuration key, e.g. storage.root
        value: Configuration value
        global_: Write to ~/.one-ring instead of the current directory
    """
    if key not in KNOWN_KEYS:
        print(f"Warning: {key} is not a recognised setting")
    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {value} ({_scope(global_)})")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Remove a configuration setting."""
    get_config(use_global=global_).unset(key)
    print(f"Unset {key} ({_scope(global_)})")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Print one configuration setting."""
    value = get_config(use_global=global_).get(key)
    print(f"{key} is not set" if value is None else f"{key} = {value}")


@config_app.command(name="list")
def list_config(global_: bool = False) -> None:
    """List configuration settings, local values overriding global ones."""
    settings = get_config(use_global=global_).list()

    if not settings:
        print(f"No {_scope(global_)} configuration settings")
        return

    for key, value in settings.items():
        description = KNOWN_KEYS.get(key)
        print(f"{key} = {value}" + (f"  # {description}" if description else ""))


@config_app.command
def where() -> None:
    """Show where records and backups are stored."""
    root, backups = resolve_storage_root(get_config())
    print(f"Records: {root}")
    print(f"Backups: {backups if backups is not None else root.parent / 'backups'}")
