"""CLI: aci windows|apps|timeline|context|invoke"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from aci_inspector.timeline import is_assistant_type
from aci_inspector.tool_calls import collect_action_params

console = Console()


def _get_client():
    from aci_inspector.cli.main import _get_client
    return _get_client()


def _open(client, session_id, agent_id):
    from aci_inspector.cli.main import _open
    return _open(client, session_id, agent_id)


def _run(coro):
    from aci_inspector.cli.main import _run
    return _run(coro)


session_option = click.option("-s", "--session", "session_id", default=None)
agent_option = click.option("-a", "--agent", "agent_id", default=None)


@click.command("windows")
@session_option
@agent_option
def windows_cmd(session_id: Optional[str], agent_id: Optional[str]):
    """List the active agent's windows and their actions."""

    async def _windows():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            windows = client.snapshot.windows
        if not windows:
            console.print("[yellow]No windows in current session.[/yellow]")
            return
        for window in windows:
            console.print(
                f"[bold]{window.id}[/bold] ({window.app_name or 'unknown'}) "
                f"[dim]createdAt={window.created_at} updatedAt={window.updated_at}[/dim]"
            )
            for action in window.actions:
                params = ", ".join(
                    f"{p.name}:{p.type}{'*' if p.required else ''}" for p in action.parameters
                )
                console.print(f"  - {action.id} ({action.label}) {params}", markup=False)

    _run(_windows())


@click.command("apps")
@session_option
@agent_option
def apps_cmd(session_id: Optional[str], agent_id: Optional[str]):
    """List apps available to the active agent."""

    async def _apps():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            apps = client.snapshot.apps
        table = Table(title=f"Apps ({len(apps)})")
        table.add_column("Name", style="bold")
        table.add_column("Started")
        table.add_column("Tags")
        table.add_column("Description")
        for app in apps:
            table.add_row(app.name, "yes" if app.is_started else "", ", ".join(app.tags), app.description or "")
        console.print(table)

    _run(_apps())


@click.command("timeline")
@session_option
@agent_option
@click.option("--current-only", is_flag=True, help="Hide obsolete items")
def timeline_cmd(session_id: Optional[str], agent_id: Optional[str], current_only: bool):
    """Show the context timeline."""

    async def _timeline():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            items = await client.timeline(include_obsolete=not current_only)
        table = Table(title=f"Timeline ({len(items)} items)")
        table.add_column("Seq", justify="right")
        table.add_column("Type")
        table.add_column("Tokens", justify="right")
        table.add_column("Content")
        for item in sorted(items, key=lambda i: i.seq):
            style = "green" if is_assistant_type(item.type) else ("dim" if item.is_obsolete else "")
            preview = item.raw_content.replace("\n", " ")[:80]
            table.add_row(str(item.seq), item.type, str(item.estimated_tokens), preview, style=style)
        console.print(table)

    _run(_timeline())


@click.command("context")
@session_option
@agent_option
@click.option("--llm", "llm_input", is_flag=True, help="Show the raw LLM input instead")
def context_cmd(session_id: Optional[str], agent_id: Optional[str], llm_input: bool):
    """Print the raw context (or raw LLM input)."""

    async def _context():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            snapshot = client.snapshot
        text = snapshot.raw_llm_input if llm_input else snapshot.raw_context
        click.echo(text if text.strip() else "No data loaded.")

    _run(_context())


@click.command("invoke")
@click.argument("window_id")
@click.argument("action_id")
@click.option("-p", "--param", "params", multiple=True, help="name=value, repeatable")
@click.option("--simulate", is_flag=True, help="Send as a simulated tool_call instead")
@session_option
@agent_option
def invoke_cmd(window_id: str, action_id: str, params: tuple, simulate: bool,
               session_id: Optional[str], agent_id: Optional[str]):
    """Invoke a window action with typed parameters."""
    raw_values = {}
    for item in params:
        name, sep, value = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected name=value, got {item!r}")
        raw_values[name.strip()] = value

    async def _invoke():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            window = client.state.window(window_id)
            action = window.action(action_id) if window else None
            if action is None:
                raise ValueError(f"Unknown action {window_id}.{action_id}")
            values = collect_action_params(action, raw_values)
            if simulate:
                result = await client.simulate_action(window_id, action_id, values)
                click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
            else:
                result = await client.invoke_action(window_id, action_id, values)
                color = "green" if result.success else "red"
                console.print(f"[{color}]success={result.success}[/{color}] {result.message or ''} {result.summary or ''}")

    _run(_invoke())
