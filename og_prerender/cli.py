"""CLI entry point for the og:image generator."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from og_prerender.extractor.directive import embed_directive
from og_prerender.models.config import GeneratorConfig
from og_prerender.models.options import ImageOptions
from og_prerender.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> GeneratorConfig:
    try:
        return GeneratorConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'og-prerender init' to create a default config.")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Generate og:image screenshots for a statically rendered site."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="og-config.json", help="Config file path")
@click.option("--public-dir", "-d", default=None, help="Override the rendered output directory")
@click.option("--full/--no-full", default=None,
              help="Capture every browser-provider page, not only static ones")
def generate(config: str, public_dir: str | None, full: bool | None) -> None:
    """Scan rendered pages and capture their og:images."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg, public_dir=public_dir, full_prerender=full, console=console)
    try:
        summary = orchestrator.run()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title="og:image Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Pages scanned", str(summary["pages"]))
    table.add_row("Queued", str(summary["queued"]))
    table.add_row("Generated", f"[green]{summary['succeeded']}[/green]")
    table.add_row("Failed", f"[red]{summary['failed']}[/red]")
    table.add_row("Duration", f"{summary['duration']}s")
    console.print(table)

    if summary["failed"]:
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="og-config.json", help="Config file path")
@click.option("--public-dir", "-d", default=None, help="Override the rendered output directory")
@click.option("--full/--no-full", default=None,
              help="Capture every browser-provider page, not only static ones")
def plan(config: str, public_dir: str | None, full: bool | None) -> None:
    """Show which pages would get a screenshot, without writing anything."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg, public_dir=public_dir, full_prerender=full, console=console)
    entries = orchestrator.plan()
    if not entries:
        console.print("[yellow]No og:image screenshots would be generated[/yellow]")
        return

    table = Table(title=f"{len(entries)} og:image screenshots")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Component")
    table.add_column("Size")
    for entry in entries:
        opts = entry.options
        table.add_row(
            str(entry.order + 1), opts.path, opts.component or "-",
            f"{opts.width}x{opts.height}",
        )
    console.print(table)


@cli.command()
@click.option("--public-dir", "-d", default=".output/public", prompt="Rendered output directory",
              help="Directory holding the rendered site")
def init(public_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path("og-config.json")
    if config_path.exists():
        if not click.confirm("og-config.json already exists. Overwrite?"):
            return

    cfg = GeneratorConfig(public_dir=public_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nAdd route rules to the config, then run:")
    console.print("  [blue]og-prerender generate[/blue]")


@cli.command()
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--options", "-o", "options_json", required=True,
              help='Directive as JSON, e.g. \'{"provider": "browser", "static": true}\'')
def embed(html_file: str, options_json: str) -> None:
    """Embed an og:image directive into a rendered HTML file."""
    try:
        options = ImageOptions.model_validate(json.loads(options_json))
    except (json.JSONDecodeError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--options") from e

    path = Path(html_file)
    html = embed_directive(path.read_text(encoding="utf-8"), options)
    path.write_text(html, encoding="utf-8")
    console.print(f"[green]Embedded og:image options into {path}[/green]")


if __name__ == "__main__":
    cli()
