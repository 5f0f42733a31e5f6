"""
claude-oracle CLI
Search and browse skills, plugins, and MCP servers across many catalogs.
"""

import asyncio
import sys

import click
import pyperclip
import questionary
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from .aggregator import Aggregator
from .config import DEFAULT_BROWSE_LIMIT, DEFAULT_SEARCH_LIMIT, MAX_LIMIT
from .console import Verbosity, console, output_console, set_verbosity
from .errors import InvalidQueryError
from .formatter import display_results, display_sources, results_to_json
from .models import Resource, ResourceType, SearchOutput, SortOrder

OUTPUT_FORMATS = ["table", "json", "simple"]


def copy_to_clipboard(text: str) -> bool:
    try:
        pyperclip.copy(text)
        return True
    except pyperclip.PyperclipException as e:
        console.print(f"[yellow]Warning: clipboard unavailable: {e}[/yellow]")
        return False


def interactive_select(results: list[Resource]) -> None:
    """Pick results and copy or show their install commands."""
    if not results:
        console.print("[yellow]No results to select from.[/yellow]")
        return

    choices = []
    for i, r in enumerate(results):
        stars = f"⭐{r.stars:g}" if r.stars else ""
        desc = r.description[:40] + "..." if len(r.description) > 40 else r.description
        choices.append(questionary.Choice(title=f"{r.name} {stars} [{r.source}] - {desc}", value=i))

    selected_indices = questionary.checkbox(
        "Select resources:",
        choices=choices,
        instruction="(Space to select, Enter to confirm)",
    ).ask()

    if not selected_indices:
        console.print("[dim]No items selected.[/dim]")
        return

    selected = [results[i] for i in selected_indices]

    action = questionary.select(
        "What would you like to do?",
        choices=[
            questionary.Choice("Copy install commands to clipboard", value="copy"),
            questionary.Choice("Show install commands", value="show"),
            questionary.Choice("Show MCP config snippets", value="config"),
            questionary.Choice("Cancel", value="cancel"),
        ],
    ).ask()

    if action == "cancel" or action is None:
        console.print("[dim]Cancelled.[/dim]")
        return

    commands = [r.install_command for r in selected if r.install_command]

    if action == "copy":
        text = "\n".join(commands)
        if copy_to_clipboard(text):
            output_console.print(f"[green]✓ Copied {len(commands)} install command(s) to clipboard![/green]")
        output_console.print(text, markup=False)

    elif action == "show":
        for command in commands:
            output_console.print(f"  {command}", markup=False)

    elif action == "config":
        for r in selected:
            if r.config_snippet:
                output_console.print(Panel.fit(r.config_snippet, title=r.name))
            else:
                output_console.print(f"[dim]{r.name}: no config snippet[/dim]")


def _run(coro_factory) -> SearchOutput:
    """Run one aggregator query with a spinner, closing clients afterwards."""

    async def run():
        aggregator = Aggregator()
        try:
            return await coro_factory(aggregator)
        finally:
            await aggregator.close()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Searching sources...", total=None)
        try:
            return asyncio.run(run())
        except InvalidQueryError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)


def _emit(result: SearchOutput, output_format: str, output) -> None:
    if output:
        with open(output, "w") as f:
            f.write(results_to_json(result))
        console.print(f"[green]Saved {len(result.results)} results to {output}[/green]")
    else:
        display_results(result, output_format)


# CLI Commands
@click.group()
@click.option(
    "-v",
    "--verbosity",
    type=click.Choice([v.value for v in Verbosity]),
    default=None,
    help="Set diagnostic verbosity: info, warning, or error",
)
@click.pass_context
def cli(ctx, verbosity):
    """claude-oracle - Discover Claude Code skills, plugins, and MCP servers"""
    ctx.ensure_object(dict)
    if verbosity:
        set_verbosity(verbosity)
    ctx.obj["verbosity"] = verbosity


@cli.command()
@click.argument("query")
@click.option(
    "-t",
    "--type",
    "resource_type",
    type=click.Choice([t.value for t in ResourceType]),
    default=ResourceType.ALL.value,
    help="Resource type filter",
)
@click.option("--semantic", is_flag=True, help="Use SkillsMP AI semantic search (needs SKILLSMP_API_KEY)")
@click.option("-n", "--limit", type=int, default=DEFAULT_SEARCH_LIMIT, help=f"Max results (max {MAX_LIMIT})")
@click.option("-f", "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table", help="Output format")
@click.option("-o", "--output", type=click.Path(), help="Save results to a JSON file")
@click.option("-i", "--interactive", "interactive_mode", is_flag=True, help="Select results to copy install commands")
def search(query, resource_type, semantic, limit, output_format, output, interactive_mode):
    """Search skills, plugins, and MCP servers by QUERY"""
    result = _run(
        lambda aggregator: aggregator.search(query, type=resource_type, semantic=semantic, limit=limit)
    )
    _emit(result, output_format, output)
    if interactive_mode and not output:
        interactive_select(result.results)


@cli.command()
@click.option("-c", "--category", help="Category or keyword filter (e.g. database, testing)")
@click.option(
    "-t",
    "--type",
    "resource_type",
    type=click.Choice([t.value for t in ResourceType]),
    default=ResourceType.ALL.value,
    help="Resource type filter",
)
@click.option(
    "-s",
    "--sort",
    type=click.Choice([s.value for s in SortOrder]),
    default=SortOrder.POPULAR.value,
    help="Sort order",
)
@click.option("-n", "--limit", type=int, default=DEFAULT_BROWSE_LIMIT, help=f"Max results (max {MAX_LIMIT})")
@click.option("-f", "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table", help="Output format")
@click.option("-o", "--output", type=click.Path(), help="Save results to a JSON file")
def browse(category, resource_type, sort, limit, output_format, output):
    """Browse by category, most popular or most recent first"""
    result = _run(
        lambda aggregator: aggregator.browse(category=category, type=resource_type, sort=sort, limit=limit)
    )
    _emit(result, output_format, output)


@cli.command()
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json"]), default="table", help="Output format")
def sources(output_format):
    """Show data sources and their cache status"""
    aggregator = Aggregator()
    try:
        result = aggregator.get_sources()
    finally:
        asyncio.run(aggregator.close())

    if output_format == "json":
        output_console.print_json(results_to_json(result))
    else:
        display_sources(result)


@cli.command()
def types():
    """List available resource types"""
    output_console.print(Panel.fit(
        "\n".join([f"• [cyan]{t.value}[/cyan]" for t in ResourceType if t != ResourceType.ALL]),
        title="Resource Types"
    ))


@cli.command()
def serve():
    """Run the MCP server on stdio"""
    from .server import main

    main()


if __name__ == "__main__":
    cli()
