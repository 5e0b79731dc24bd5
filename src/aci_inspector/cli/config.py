"""CLI: aci config show|set"""

import click
from rich.console import Console
from rich.table import Table

console = Console()

_CASTS = {
    "base_url": str,
    "include_obsolete": lambda v: v.strip().lower() in ("1", "true", "yes", "on"),
    "poll_interval": float,
}


def _load_config() -> dict:
    from aci_inspector.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from aci_inspector.cli.main import _save_config
    _save_config(cfg)


@click.group()
def config():
    """Saved settings."""


@config.command("show")
def config_show():
    """Print the current settings."""
    from aci_inspector.cli.main import CONFIG_FILE
    table = Table(title=str(CONFIG_FILE))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in _load_config().items():
        table.add_row(key, str(value))
    console.print(table)


@config.command("set")
@click.argument("key", type=click.Choice(sorted(_CASTS)))
@click.argument("value")
def config_set(key: str, value: str):
    """Change one setting."""
    try:
        parsed = _CASTS[key](value)
    except ValueError:
        raise click.BadParameter(f"{value!r} is not valid for {key}")
    if key == "poll_interval" and parsed <= 0:
        raise click.BadParameter("poll_interval must be positive")
    cfg = _load_config()
    cfg[key] = parsed
    _save_config(cfg)
    console.print(f"[green]{key} = {parsed}[/green]")
