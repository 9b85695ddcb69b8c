from typing import Optional
import typer
import asyncio
import logging
import time
from typing_extensions import Annotated
from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from voice_memos.client.voice_memos import VoiceMemos
from voice_memos.domains.memo import format_date, truncate_text
from voice_memos.services.speech import SpeechRecognitionHandle

# --- Basic Logging Configuration ---
logging.basicConfig(level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s")
# --- End Logging Configuration ---

app = typer.Typer(help="Capture short memos, typed or dictated, into a local database.")
console = Console()

ConfigOption = Annotated[
    str, typer.Option("--config", "-c", help="Path to the configuration file.")
]


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _load_client(config: str) -> VoiceMemos:
    try:
        return VoiceMemos(config_path=config)
    except FileNotFoundError:
        console.print(
            f"[bold red]Error:[/bold red] Configuration file not found at '{config}'"
        )
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[bold red]Error loading configuration:[/bold red] {e}")
        raise typer.Exit(code=1)


async def _with_client(client: VoiceMemos, action):
    """Run an async action against a started client and stop it afterwards."""
    async with client:
        if client.state.error:
            console.print(f"[bold red]Storage error:[/bold red] {client.state.error}")
            raise typer.Exit(code=1)
        return await action(client)


def _memo_table(memos, width: int) -> Table:
    table = Table(show_lines=False)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Text")
    table.add_column("Created", no_wrap=True)
    table.add_column("Updated", no_wrap=True)
    for memo in memos:
        table.add_row(
            memo.id,
            truncate_text(memo.text, width),
            format_date(memo.created_at),
            format_date(memo.updated_at),
        )
    return table


@app.command("list")
def list_memos(
    config: ConfigOption = "config.json",
    search: Annotated[
        Optional[str], typer.Option("--search", "-s", help="Case-insensitive text filter.")
    ] = None,
    sort: Annotated[
        str, typer.Option(help="Sort by created_at, updated_at or text.")
    ] = "created_at",
    asc: Annotated[bool, typer.Option("--asc", help="Ascending order.")] = False,
    width: Annotated[int, typer.Option(help="Maximum text length shown.")] = 60,
):
    """List stored memos."""
    if sort not in ("created_at", "updated_at", "text"):
        console.print(f"[bold red]Error:[/bold red] Unknown sort field '{sort}'")
        raise typer.Exit(code=1)
    client = _load_client(config)

    async def action(c: VoiceMemos):
        return c.list_memos(search=search, sort_by=sort, descending=not asc)

    memos = asyncio.run(_with_client(client, action))
    if not memos:
        console.print("[yellow]No memos found.[/yellow]")
        return
    console.print(_memo_table(memos, width))


@app.command()
def show(
    memo_id: Annotated[str, typer.Argument(help="Memo ID.")],
    config: ConfigOption = "config.json",
):
    """Show a single memo."""
    client = _load_client(config)

    async def action(c: VoiceMemos):
        return await c.get_memo(memo_id), c.state.error

    memo, error = asyncio.run(_with_client(client, action))
    if error:
        console.print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=1)
    if memo is None:
        console.print(f"[yellow]Memo {memo_id} not found.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[dim]{memo.id}[/dim]")
    console.print(
        f"[dim]Created {format_date(memo.created_at)} | Updated {format_date(memo.updated_at)}[/dim]"
    )
    console.print(memo.text)


@app.command()
def add(
    text: Annotated[str, typer.Argument(help="Memo text.")],
    config: ConfigOption = "config.json",
):
    """Create a memo."""
    if not text.strip():
        console.print("[bold red]Error:[/bold red] Memo text cannot be empty")
        raise typer.Exit(code=1)
    client = _load_client(config)

    async def action(c: VoiceMemos):
        return await c.create_memo(text)

    try:
        memo = asyncio.run(_with_client(client, action))
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error creating memo:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Created memo[/green] {memo.id}")


@app.command()
def edit(
    memo_id: Annotated[str, typer.Argument(help="Memo ID.")],
    text: Annotated[str, typer.Argument(help="New memo text.")],
    config: ConfigOption = "config.json",
):
    """Replace the text of a memo."""
    if not text.strip():
        console.print("[bold red]Error:[/bold red] Memo text cannot be empty")
        raise typer.Exit(code=1)
    client = _load_client(config)

    async def action(c: VoiceMemos):
        return await c.update_memo(memo_id, text), c.state.error

    memo, error = asyncio.run(_with_client(client, action))
    if error:
        console.print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=1)
    if memo is None:
        console.print(f"[yellow]Memo {memo_id} not found.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]Updated memo[/green] {memo.id}")


@app.command()
def delete(
    memo_id: Annotated[str, typer.Argument(help="Memo ID.")],
    config: ConfigOption = "config.json",
):
    """Delete a memo."""
    client = _load_client(config)

    async def action(c: VoiceMemos):
        return await c.delete_memo(memo_id), c.state.error

    deleted, error = asyncio.run(_with_client(client, action))
    if error:
        console.print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=1)
    if not deleted:
        console.print(f"[yellow]Memo {memo_id} not found.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted memo[/green] {memo_id}")


def _render_session(handle: SpeechRecognitionHandle) -> Text:
    status = "[green]Listening[/green]" if handle.is_listening else "[yellow]Waiting[/yellow]"
    text = Text.from_markup(f"{status} [dim](Ctrl+C to stop)[/dim]\n")
    text.append(handle.transcript or "...")
    if handle.error:
        text.append(f"\n{handle.error}", style="red")
    return text


@app.command()
def dictate(
    config: ConfigOption = "config.json",
    language: Annotated[
        Optional[str], typer.Option(help="Locale tag overriding the configured language.")
    ] = None,
):
    """Dictate a memo. Stop with Ctrl+C; the transcript is saved if not empty."""
    client = _load_client(config)
    overrides = {"interim_results": True}
    if language:
        overrides["language"] = language

    handle = client.speech_session(**overrides)
    if not handle.supported:
        console.print(f"[bold red]Speech recognition unavailable:[/bold red] {handle.error}")
        raise typer.Exit(code=1)

    handle.start_listening()
    try:
        with Live(console=console, refresh_per_second=10, transient=True) as live:
            while True:
                live.update(_render_session(handle))
                time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        handle.close()

    text = handle.manager.transcript.strip()
    if not text:
        console.print("[yellow]Nothing was recognized; no memo saved.[/yellow]")
        return

    async def action(c: VoiceMemos):
        return await c.create_memo(text)

    try:
        memo = asyncio.run(_with_client(client, action))
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error creating memo:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Saved memo[/green] {memo.id}: {text}")


if __name__ == "__main__":
    app()
