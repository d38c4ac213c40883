"""Typer-based CLI for Beacon."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .chat.orchestrator import ChatState
from .config import BeaconConfig
from .errors import BeaconError
from .logging_utils import setup_logging
from .models.conversation import MessageRole
from .notes import NoteDraft, NoteMode, NoteOutcome, parse_tags
from .services import BeaconServices, build_services

app = typer.Typer(
    name="beacon",
    help="Beacon - capture notes, chat with the assistant and inspect The Array inbox",
    add_completion=False,
)

console = Console()

_state: dict = {"config_file": None}


@app.callback()
def main_callback(
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.toml (default: BEACON_CONFIG env or ~/.beacon/config.toml)",
    ),
):
    """Beacon command line."""
    _state["config_file"] = Path(config_file) if config_file else None


def _load_config() -> BeaconConfig:
    return BeaconConfig.from_env(config_file=_state["config_file"])


def _services() -> BeaconServices:
    """Load configuration, start logging and build the components."""
    config = _load_config()
    setup_logging(config.log_dir, config.log_level)
    return build_services(config)


def _print_outcome(outcome: NoteOutcome) -> None:
    if outcome.success:
        console.print(f"[green]Saved to Array inbox:[/green] {outcome.message}")
        if outcome.response and outcome.response.file_path:
            console.print(f"  File: {outcome.response.file_path}")
        if outcome.response and outcome.response.item_id:
            console.print(f"  ID:   {outcome.response.item_id}")
    else:
        console.print(f"[red]Error: {outcome.message}[/red]")
        raise typer.Exit(code=1)


@app.command()
def status():
    """Show The Array connection status, hostname and version."""
    services = _services()

    try:
        array_status = services.array_client.get_status()
    except BeaconError as e:
        console.print("[red]CONNECTION: OFFLINE[/red]")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="SYSTEM STATUS", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("CONNECTION", "[green]ONLINE[/green]")
    table.add_row("STATUS", array_status.status)
    table.add_row("HOSTNAME", array_status.hostname.upper())
    table.add_row("VERSION", array_status.version)
    table.add_row("UPTIME", f"{array_status.uptime_seconds:.0f}s")
    console.print(table)


@app.command()
def health():
    """Check the ingest endpoint health."""
    services = _services()

    try:
        healthy = services.array_client.check_health()
    except BeaconError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if healthy:
        console.print("[green]Ingest endpoint: ok[/green]")
    else:
        console.print("[yellow]Ingest endpoint: unhealthy[/yellow]")
        raise typer.Exit(code=1)


@app.command()
def queue():
    """List items in the Array inbox queue."""
    services = _services()

    try:
        response = services.array_client.get_queue()
    except BeaconError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if not response.items:
        console.print("[dim]INBOX EMPTY[/dim]")
        return

    table = Table(title=f"INBOX ({response.count})")
    table.add_column("Title", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Captured", style="cyan", no_wrap=True)
    table.add_column("Device", style="dim")
    table.add_column("Status", style="yellow")

    for item in response.items:
        table.add_row(
            item.title,
            item.source_type,
            item.captured_at,
            item.device or "-",
            item.status or "-",
        )

    console.print(table)


@app.command()
def sessions(
    limit: int = typer.Option(
        5,
        "--limit",
        "-l",
        help="Number of recent sessions to fetch",
    ),
):
    """List recent conversation sessions stored in The Array."""
    services = _services()

    try:
        recent = services.array_client.get_recent_sessions(limit=limit)
    except BeaconError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if not recent:
        console.print("[dim]No recent sessions[/dim]")
        return

    table = Table(title=f"Recent Sessions ({len(recent)})")
    table.add_column("Created", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Messages", justify="right")

    for conversation in recent:
        table.add_row(
            conversation.created_at.strftime("%Y-%m-%d %H:%M"),
            conversation.title,
            str(len(conversation.messages)),
        )

    console.print(table)


@app.command()
def note(
    title: str = typer.Option(
        ...,
        "--title",
        "-t",
        help="Note title",
    ),
    content: str = typer.Option(
        None,
        "--content",
        help="Note text (text mode)",
    ),
    tags: str = typer.Option(
        "",
        "--tags",
        help="Comma separated tags",
    ),
    voice: bool = typer.Option(
        False,
        "--voice",
        help="Record a voice note and submit its transcript",
    ),
):
    """Save a text or voice note to the Array inbox.

    Voice mode records from the default input device until Enter is pressed,
    transcribes the recording and submits the transcript.
    """
    services = _services()
    draft = NoteDraft(
        title=title,
        content=content,
        tags=parse_tags(tags),
        mode=NoteMode.VOICE if voice else NoteMode.TEXT,
    )

    if voice:
        if not title.strip():
            console.print("[red]Error: A title is required[/red]")
            raise typer.Exit(code=1)
        pipeline = services.voice_pipeline
        try:
            pipeline.start_recording()
        except Exception as e:
            console.print(f"[red]Error starting recording: {e}[/red]")
            raise typer.Exit(code=1)
        console.print("[bold red]Recording...[/bold red] press Enter to stop")
        input()
        pipeline.stop_recording()
        console.print("[dim]Transcribing...[/dim]")

    outcome = services.notes.submit(draft)

    if voice and services.voice_pipeline.status.transcript:
        console.print(f"[dim]Transcript:[/dim] {services.voice_pipeline.status.transcript}")

    _print_outcome(outcome)


@app.command("quick-note")
def quick_note():
    """Send a system-check note to the Array inbox."""
    services = _services()
    _print_outcome(services.notes.quick_note())


def _render_reply(state: ChatState) -> None:
    if state.error:
        console.print(f"[red]Error: {state.error}[/red]")
        return
    messages = state.conversation.messages
    if messages and messages[-1].role == MessageRole.ASSISTANT:
        console.print(f"[bold blue]Assistant:[/bold blue] {messages[-1].content}")
    if state.archive_error:
        console.print(f"[yellow]Not archived: {state.archive_error}[/yellow]")


@app.command()
def chat(
    message: str = typer.Option(
        None,
        "--message",
        "-m",
        help="Send a single message and exit",
    ),
):
    """Chat with the assistant. Each exchange is archived in The Array.

    Interactive commands: /clear starts a new conversation, /quit exits.
    """
    services = _services()

    if not services.api_keys.has_api_key:
        console.print("[red]Error: Anthropic API Key not found.[/red]")
        console.print("[yellow]Run 'beacon key set' first[/yellow]")
        raise typer.Exit(code=1)

    orchestrator = services.new_orchestrator()

    if message is not None:
        state = orchestrator.send_message(message)
        _render_reply(state)
        if state.error:
            raise typer.Exit(code=1)
        return

    console.print("[dim]Type a message. /clear for a new chat, /quit to exit.[/dim]")
    while True:
        try:
            text = console.input("[bold]You:[/bold] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        command = text.strip().lower()
        if command in ("/quit", "/exit"):
            break
        if command == "/clear":
            orchestrator.clear_chat()
            console.print("[dim]Started a new chat[/dim]")
            continue

        orchestrator.set_input(text)
        with console.status("Thinking..."):
            state = orchestrator.send_message()
        _render_reply(state)


key_app = typer.Typer(help="API key commands")
app.add_typer(key_app, name="key")


@key_app.command("set")
def key_set(
    value: str = typer.Option(
        ...,
        "--value",
        prompt="Anthropic API key",
        hide_input=True,
        help="API key to store",
    ),
):
    """Store the Anthropic API key in the secret store."""
    services = _services()
    if not value.strip():
        console.print("[red]Error: API key is empty[/red]")
        raise typer.Exit(code=1)
    services.api_keys.save_api_key(value)
    console.print(f"[green]+[/green] Saved API key {services.api_keys.masked()}")


@key_app.command("status")
def key_status():
    """Show whether an API key is stored."""
    services = _services()
    masked = services.api_keys.masked()
    if masked:
        console.print(f"[green]API key stored:[/green] {masked}")
    else:
        console.print("[yellow]No API key stored[/yellow]")


@key_app.command("clear")
def key_clear():
    """Remove the stored API key."""
    services = _services()
    services.api_keys.remove_api_key()
    console.print("[green]API key removed[/green]")


@app.command("config")
def show_config():
    """Print the effective configuration as TOML."""
    console.print(_load_config().to_toml_str(), markup=False, highlight=False)


@app.command()
def version():
    """Show Beacon version."""
    from . import __version__
    console.print(f"Beacon v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
