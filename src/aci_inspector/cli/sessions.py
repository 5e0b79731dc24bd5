"""CLI: aci sessions list|create|close"""

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_client():
    from aci_inspector.cli.main import _get_client
    return _get_client()


def _run(coro):
    from aci_inspector.cli.main import _run
    return _run(coro)


@click.group()
def sessions():
    """Session management."""


@sessions.command("list")
@click.option("--json-output", "--json", is_flag=True)
def sessions_list(json_output):
    """List sessions."""

    async def _list():
        async with _get_client() as client:
            result = await client.api.list_sessions()
        if json_output:
            click.echo(json.dumps([s.model_dump(mode="json") for s in result], indent=2))
            return
        table = Table(title=f"Sessions ({len(result)} total)")
        table.add_column("ID", style="bold")
        table.add_column("Created")
        table.add_column("Agents")
        for s in result:
            created = f"{s.created_at:%Y-%m-%d %H:%M:%S}" if s.created_at else ""
            agents = ", ".join(a.name or a.agent_id for a in s.agents)
            table.add_row(s.session_id, created, agents)
        console.print(table)

    _run(_list())


@sessions.command("create")
def sessions_create():
    """Create a new session."""

    async def _create():
        async with _get_client() as client:
            with console.status("Creating session..."):
                session = await client.api.create_session()
        agent = session.first_agent
        console.print(f"[green]Session created: {session.session_id}[/green]")
        if agent:
            console.print(f"[dim]Agent: {agent.agent_id}[/dim]")

    _run(_create())


@sessions.command("close")
@click.argument("session_id")
def sessions_close(session_id):
    """Close a session."""

    async def _close():
        async with _get_client() as client:
            with console.status("Closing..."):
                await client.api.close_session(session_id)
        console.print(f"[green]Session {session_id} closed.[/green]")

    _run(_close())
