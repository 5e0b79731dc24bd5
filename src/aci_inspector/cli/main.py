"""
ACI inspector CLI: the `aci` command.

Commands:
  aci config show|set        Saved settings (server URL, polling)
  aci sessions <cmd>         Session list/create/close
  aci send <message>         One interaction, live output
  aci chat                   Interactive REPL
  aci simulate <output>      Simulated assistant output
  aci windows|apps|timeline  Inspect the active agent
  aci context [--llm]        Raw context / raw LLM input
  aci invoke <win> <action>  Direct window action
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install aci-inspector[cli]")

from aci_inspector.client import AsyncInspectorClient
from aci_inspector.errors import ApiClientError, InteractionBusyError, InteractionError, SessionError
from aci_inspector.interaction import DEFAULT_POLL_INTERVAL_S
from aci_inspector.transport.http import DEFAULT_BASE_URL

console = Console()
CONFIG_FILE = Path.home() / ".aci-inspector" / "config.json"

CONFIG_DEFAULTS: dict[str, Any] = {
    "base_url": DEFAULT_BASE_URL,
    "include_obsolete": True,
    "poll_interval": DEFAULT_POLL_INTERVAL_S,
}


def _load_config() -> dict:
    try:
        return {**CONFIG_DEFAULTS, **json.loads(CONFIG_FILE.read_text())}
    except (FileNotFoundError, json.JSONDecodeError):
        return dict(CONFIG_DEFAULTS)


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client() -> AsyncInspectorClient:
    cfg = _load_config()
    ctx = click.get_current_context(silent=True)
    override = ctx.find_root().obj.get("base_url") if ctx and ctx.find_root().obj else None
    return AsyncInspectorClient(
        base_url=override or cfg["base_url"],
        poll_interval=float(cfg["poll_interval"]),
        include_obsolete=bool(cfg["include_obsolete"]),
    )


async def _open(client: AsyncInspectorClient, session_id: Optional[str], agent_id: Optional[str]) -> None:
    """Select the requested session, or fall back to the catalog default."""
    if session_id:
        await client.select_session(session_id, agent_id)
    else:
        await client.reload_catalog()


def _run(coro):
    try:
        return asyncio.run(coro)
    except (ApiClientError, SessionError, InteractionError, InteractionBusyError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("--base-url", default=None, help="Override the saved server URL")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, base_url: Optional[str], verbose: bool):
    """ACI inspector CLI: poke at an agent context backend."""
    ctx.obj = {"base_url": base_url}
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


# Register subcommands from separate modules
from aci_inspector.cli.config import config
from aci_inspector.cli.sessions import sessions
from aci_inspector.cli.chat import chat_cmd, send_cmd, simulate_cmd
from aci_inspector.cli.inspect import windows_cmd, apps_cmd, timeline_cmd, context_cmd, invoke_cmd

main.add_command(config)
main.add_command(sessions)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(simulate_cmd)
main.add_command(windows_cmd)
main.add_command(apps_cmd)
main.add_command(timeline_cmd)
main.add_command(context_cmd)
main.add_command(invoke_cmd)


if __name__ == "__main__":
    main()
