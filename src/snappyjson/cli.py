"""Command line interface for SnappyJSON."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn
from rich.table import Table

from snappyjson import commands
from snappyjson.document import codec
from snappyjson.errors import SnappyError
from snappyjson.events import PARSE_PROGRESS, SEARCH_BATCH, SEARCH_DONE
from snappyjson.models import Node, SearchResult
from snappyjson.state import AppState

LOGGER = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="SnappyJSON - browse, search and edit large JSON documents")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: SnappyError) -> typer.Exit:
    console.print(f"[red]{escape(str(exc))}[/red]")
    return typer.Exit(code=1)


def _load(state: AppState, path: Path) -> list[Node]:
    """Open ``path`` showing a progress bar driven by parse_progress events."""
    with Progress(
        TextColumn("[bold]Parsing[/bold] {task.description}"),
        BarColumn(),
        DownloadColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(path.name, total=None)

        def on_progress(payload: dict) -> None:
            total = payload["totalBytes"] or None
            progress.update(task, completed=payload["readBytes"], total=total)

        state.events.add_listener(PARSE_PROGRESS, on_progress)
        try:
            nodes = commands.open_file(state, path)
        except SnappyError as exc:
            raise _fail(exc) from exc
        finally:
            state.events.remove_listener(PARSE_PROGRESS, on_progress)

    try:
        commands.save_last_opened_file(state, str(path))
    except SnappyError as exc:
        LOGGER.warning("Could not remember %s: %s", path, exc)
    return nodes


def _node_table(nodes: Iterable[Node]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Pointer")
    table.add_column("Type")
    table.add_column("Children", justify="right")
    table.add_column("Preview")
    for node in nodes:
        table.add_row(node.pointer, node.value_type, str(node.child_count), node.preview[:120])
    return table


def _result_table(results: Iterable[SearchResult]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Match")
    table.add_column("Pointer")
    table.add_column("Text")
    table.add_column("Context")
    for result in results:
        table.add_row(
            result.match_type,
            result.node.pointer,
            result.match_text[:120],
            result.context or "",
        )
    return table


def _write_document(state: AppState, output: Optional[Path]) -> None:
    with state.store.read() as root:
        text = codec.dumps_pretty(root)
    if output is None:
        console.print_json(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"Wrote [bold]{output}[/bold]")


@app.command()
def tree(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    pointer: str = typer.Option("", "--pointer", "-p", help="JSON Pointer of the parent node"),
    offset: int = typer.Option(0, help="Index of the first child"),
    limit: int = typer.Option(100, help="Maximum number of children"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List one page of children of a node."""
    _setup_logging(verbose)
    with AppState() as state:
        _load(state, file)
        nodes = commands.load_children(state, pointer, offset, limit)
    if not nodes:
        console.print("[yellow]No children.[/yellow]")
        return
    console.print(_node_table(nodes))


@app.command()
def search(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    query: str = typer.Argument(..., help="Query text or regular expression"),
    keys: bool = typer.Option(True, "--keys/--no-keys", help="Match object keys"),
    values: bool = typer.Option(True, "--values/--no-values", help="Match scalar values"),
    paths: bool = typer.Option(False, "--paths/--no-paths", help="Match JSON Pointers"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", "-c", help="Case sensitive"),
    regex: bool = typer.Option(False, "--regex", "-r", help="Treat query as a regex"),
    whole_word: bool = typer.Option(False, "--whole-word", "-w", help="Match whole words only"),
    offset: int = typer.Option(0, help="Index of the first result"),
    limit: int = typer.Option(50, help="Number of results to display"),
    stream: bool = typer.Option(False, "--stream", help="Print results in batches as they are found"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search keys, values and paths."""
    _setup_logging(verbose)
    options = dict(
        search_keys=keys,
        search_values=values,
        search_paths=paths,
        case_sensitive=case_sensitive,
        regex=regex,
        whole_word=whole_word,
    )
    with AppState() as state:
        _load(state, file)
        if stream:
            _stream(state, query, options)
            return
        response = commands.search(state, query, offset=offset, limit=limit, **options)

    if not response.results:
        console.print("[yellow]No matches found.[/yellow]")
        return
    console.print(_result_table(response.results))
    more = " (more available)" if response.has_more else ""
    console.print(f"Showing {len(response.results)} of {response.total_count}{more}")


def _stream(state: AppState, query: str, options: dict) -> None:
    with state.events.subscribe({SEARCH_BATCH, SEARCH_DONE}) as subscription:
        try:
            search_id = commands.search_stream(state, query, **options)
        except SnappyError as exc:
            raise _fail(exc) from exc

        while True:
            event = subscription.get(timeout=1.0)
            if event is None or event.payload["id"] != search_id:
                continue
            if event.name == SEARCH_DONE:
                payload = event.payload
                console.print(f"Found {payload['total']} matches in {payload['elapsed_ms']} ms")
                return
            rows = event.payload["batch"]
            table = Table(show_header=False, box=None)
            for row in rows:
                table.add_row(row["match_type"], row["node"]["pointer"], row["match_text"][:120])
            console.print(table)


@app.command()
def get(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    pointer: str = typer.Argument("", help="JSON Pointer of the value"),
    pretty: bool = typer.Option(True, "--pretty/--compact", help="Pretty-print the value"),
) -> None:
    """Print the JSON value at a pointer."""
    with AppState() as state:
        _load(state, file)
        try:
            text = commands.get_node_value(state, pointer)
        except SnappyError as exc:
            raise _fail(exc) from exc
    if pretty:
        console.print_json(text)
    else:
        typer.echo(text)


@app.command("set")
def set_value(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    pointer: str = typer.Argument(..., help="JSON Pointer of a string, number or boolean"),
    value: str = typer.Argument(..., help="New value text"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the edited document here"),
) -> None:
    """Edit a scalar value, keeping its type."""
    with AppState() as state:
        _load(state, file)
        try:
            node = commands.set_node_value(state, pointer, value)
        except SnappyError as exc:
            raise _fail(exc) from exc
        console.print(_node_table([node]))
        _write_document(state, output)


@app.command("set-subtree")
def set_subtree(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    pointer: str = typer.Argument(..., help="JSON Pointer of an object or array"),
    new_json: str = typer.Argument(..., help="Replacement object or array"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the edited document here"),
) -> None:
    """Replace an object or array with one of the same kind."""
    with AppState() as state:
        _load(state, file)
        try:
            node = commands.set_subtree(state, pointer, new_json)
        except SnappyError as exc:
            raise _fail(exc) from exc
        console.print(_node_table([node]))
        _write_document(state, output)


@app.command()
def unstringify(
    file: Path = typer.Argument(..., help="JSON file to open", exists=True, dir_okay=False),
    pointer: str = typer.Argument(..., help="JSON Pointer of a string holding JSON"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the edited document here"),
) -> None:
    """Replace a string containing an encoded object/array with its decoded value."""
    with AppState() as state:
        _load(state, file)
        try:
            node = commands.parse_stringified_json(state, pointer)
        except SnappyError as exc:
            raise _fail(exc) from exc
        console.print(_node_table([node]))
        _write_document(state, output)


@app.command()
def last(
    clear: bool = typer.Option(False, "--clear", help="Forget the last opened file"),
) -> None:
    """Show (or forget) the last opened file."""
    with AppState() as state:
        try:
            if clear:
                commands.clear_last_opened_file(state)
                console.print("Cleared.")
                return
            path = commands.load_last_opened_file(state)
        except SnappyError as exc:
            raise _fail(exc) from exc
    typer.echo(path)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP command server."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from snappyjson.web.app import app as web_app

    console.print(f"Starting SnappyJSON server on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
