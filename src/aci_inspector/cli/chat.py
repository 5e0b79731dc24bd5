"""CLI: aci chat, aci send, aci simulate"""

import json
from typing import Optional

import click
from rich.console import Console

from aci_inspector.errors import ApiClientError, InteractionError
from aci_inspector.models.transcript import TranscriptEntry, TranscriptRole

console = Console()

ROLE_STYLES = {
    TranscriptRole.USER: "cyan",
    TranscriptRole.ASSISTANT: "green",
    TranscriptRole.SYSTEM: "yellow",
    TranscriptRole.SIMULATOR: "magenta",
}


def _get_client():
    from aci_inspector.cli.main import _get_client
    return _get_client()


def _open(client, session_id, agent_id):
    from aci_inspector.cli.main import _open
    return _open(client, session_id, agent_id)


def _run(coro):
    from aci_inspector.cli.main import _run
    return _run(coro)


def print_entry(entry: TranscriptEntry) -> None:
    style = ROLE_STYLES.get(entry.role, "white")
    console.print(f"[{style}]{entry.role.value}[/{style}] [dim]{entry.time:%H:%M:%S}[/dim]")
    console.print(entry.content, markup=False, highlight=False)


def _echo_json(entry: TranscriptEntry) -> None:
    click.echo(json.dumps(entry.model_dump(mode="json")))


@click.command("send")
@click.argument("message")
@click.option("-s", "--session", "session_id", default=None)
@click.option("-a", "--agent", "agent_id", default=None)
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, session_id: Optional[str], agent_id: Optional[str], json_output: bool):
    """Send one message and stream the agent's output."""

    async def _send():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            client.transcript.add_listener(_echo_json if json_output else print_entry)
            await client.send(message)

    _run(_send())


@click.command("simulate")
@click.argument("output")
@click.option("-s", "--session", "session_id", default=None)
@click.option("-a", "--agent", "agent_id", default=None)
def simulate_cmd(output: str, session_id: Optional[str], agent_id: Optional[str]):
    """Feed OUTPUT to the backend as if the model had produced it."""

    async def _simulate():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            client.transcript.add_listener(print_entry)
            await client.simulate(output)

    _run(_simulate())


@click.command("chat")
@click.option("-s", "--session", "session_id", default=None)
@click.option("-a", "--agent", "agent_id", default=None)
def chat_cmd(session_id: Optional[str], agent_id: Optional[str]):
    """Interactive chat. Lines starting with /sim are sent as simulated output."""

    async def _chat():
        async with _get_client() as client:
            await _open(client, session_id, agent_id)
            client.transcript.add_listener(print_entry)
            if client.state.session_id:
                console.print(f"[dim]Session: {client.state.session_id} agent: {client.state.agent_id}[/dim]")
            console.print("[cyan]Type your message (/quit to exit)[/cyan]\n")
            while True:
                try:
                    msg = click.prompt("You", prompt_suffix=": ")
                except (KeyboardInterrupt, EOFError, click.exceptions.Abort):
                    break
                if msg.lower() in ("/quit", "/exit"):
                    break
                try:
                    if msg.startswith("/sim "):
                        await client.simulate(msg[len("/sim "):])
                    else:
                        await client.send(msg)
                except (ApiClientError, InteractionError) as e:
                    # already in the transcript; keep the REPL alive
                    console.print(f"[dim]{e.__class__.__name__}[/dim]")

    _run(_chat())
