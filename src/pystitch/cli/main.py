"""Main CLI entry point."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import rich_click as click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pystitch import __version__
from pystitch.compiler.markup import get_parser, serialize
from pystitch.config import StitchConfig
from pystitch.core.exceptions import (
    FragmentParseError,
    ParseFailure,
    RenderFailure,
    StitchError,
)
from pystitch.runtime.composer import TreeComposer
from pystitch.runtime.loader import load_registry

console = Console()
err_console = Console(stderr=True)

# Cyan theme
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_HELPTEXT_FIRST = True
click.rich_click.STYLE_COMMANDS_TABLE_SHOW_LINES = False
click.rich_click.STYLE_COMMANDS_TABLE_HEADER = "bold magenta"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running 'pystitch --help' for more information."
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.STYLE_METAVAR = "dim white"
click.rich_click.STYLE_USAGE_COMMAND = "cyan"
click.rich_click.STYLE_USAGE = "dim"

click.rich_click.COMMAND_GROUPS = {
    "pystitch": [
        {
            "name": "Commands",
            "commands": ["compose", "components"],
        }
    ]
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )


def _load_config(
    components_dir: Optional[str],
    registry: Optional[str],
    **overrides: object,
) -> StitchConfig:
    try:
        config = StitchConfig.load()
        return config.override(
            components_dir=Path(components_dir) if components_dir else None,
            registry=registry,
            **overrides,
        )
    except StitchError as e:
        raise click.UsageError(str(e))


def _report_failure(exc: StitchError) -> None:
    if isinstance(exc, FragmentParseError):
        err_console.print(f"[bold red]Fragment error[/]: {escape(str(exc))}")
        err_console.print(exc.fragment, style="dim", markup=False, highlight=False)
    elif isinstance(exc, ParseFailure):
        err_console.print(f"[bold red]Parse error[/]: {escape(str(exc))}")
    elif isinstance(exc, RenderFailure):
        err_console.print(f"[bold red]Render error[/] in <{exc.tag_name}>: {escape(repr(exc.original))}")
    else:
        err_console.print(f"[bold red]Error[/]: {escape(str(exc))}")


@click.group(
    help=f"""
[bold white on cyan] pystitch [/] [bold cyan]v{__version__}[/] Compose server-rendered components into static markup.

Run [bold cyan]pystitch compose page.html --components components/[/] to render a page.
"""
)
@click.version_option(__version__)
def cli() -> None:
    pass


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--components", "components_dir", default=None, help="Directory of <tag-name>.html component templates")
@click.option("--registry", default=None, help="Renderer registry to import, as 'module:attr'")
@click.option("--parser", type=click.Choice(["xml", "html"]), default=None, help="Markup parser (default: xml, strict)")
@click.option("--slot-tag", default=None, help="Insertion point tag name (default: slot)")
@click.option("--timeout", "render_timeout", type=float, default=None, help="Per-renderer timeout in seconds")
@click.option("--compose-discarded", is_flag=True, help="Still render children that have no insertion point")
@click.option("-o", "--output", type=click.Path(dir_okay=False, writable=True), default=None, help="Write to file instead of stdout")
@click.option("-v", "--verbose", is_flag=True, help="Log every renderer invocation")
def compose(
    source,
    components_dir: Optional[str],
    registry: Optional[str],
    parser: Optional[str],
    slot_tag: Optional[str],
    render_timeout: Optional[float],
    compose_discarded: bool,
    output: Optional[str],
    verbose: bool,
) -> None:
    """Compose SOURCE (a file, or - for stdin) and print the result."""
    config = _load_config(
        components_dir,
        registry,
        parser=parser,
        slot_tag=slot_tag,
        render_timeout=render_timeout,
        discard_policy="compose" if compose_discarded else None,
    )
    _configure_logging(verbose or config.debug)

    try:
        renderers = load_registry(config)
        composer = TreeComposer.from_config(config, renderers)
        markup_parser = get_parser(config.parser)
        root = markup_parser.parse_document(source.read())
        result = serialize(asyncio.run(composer.compose(root)))
    except StitchError as e:
        _report_failure(e)
        sys.exit(1)

    if output:
        Path(output).write_text(result, encoding="utf-8")
        err_console.print(f"✅ Wrote [cyan]{output}[/]")
    else:
        click.echo(result)


@cli.command()
@click.option("--components", "components_dir", default=None, help="Directory of <tag-name>.html component templates")
@click.option("--registry", default=None, help="Renderer registry to import, as 'module:attr'")
def components(components_dir: Optional[str], registry: Optional[str]) -> None:
    """List registered component tags."""
    config = _load_config(components_dir, registry)

    try:
        renderers = load_registry(config)
    except StitchError as e:
        _report_failure(e)
        sys.exit(1)

    if not renderers:
        console.print("[yellow]No components registered.[/]")
        return

    table = Table(box=None, header_style="bold magenta")
    table.add_column("Tag", style="cyan")
    table.add_column("Renderer")
    for tag_name in sorted(renderers):
        entry = renderers[tag_name]
        table.add_row(f"<{tag_name}>", getattr(entry.render, "__qualname__", repr(entry.render)))
    console.print(table)


if __name__ == "__main__":
    cli()
