"""Human-readable and JSON rendering of query results."""

import json

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .console import output_console
from .models import Resource, ResourceType, SearchOutput, SourcesOutput, SourceStatus

TYPE_TITLES = {
    ResourceType.PLUGIN.value: "Plugins",
    ResourceType.MCP.value: "MCP Servers",
    ResourceType.SKILL.value: "Skills",
}

STATUS_MARKS = {
    SourceStatus.OK.value: "[green]✓ ok[/green]",
    SourceStatus.STALE.value: "[yellow]⚠ stale[/yellow]",
    SourceStatus.ERROR.value: "[red]✗ error[/red]",
    SourceStatus.NO_KEY.value: "[yellow]⚠ No API key[/yellow]",
}


def results_to_json(output: SearchOutput | SourcesOutput) -> str:
    return json.dumps(output.to_dict(), indent=2, ensure_ascii=False, default=str)


def _meta_line(r: Resource) -> str:
    meta = [r.source]
    if r.author:
        meta.append(f"by {r.author}")
    if r.stars:
        meta.append(f"{r.stars:g} stars")
    if r.popularity_score:
        meta.append(f"{r.popularity_score:g} downloads")
    if r.quality_score:
        meta.append(f"quality: {r.quality_score:.2f}")
    if r.verified:
        meta.append("verified")
    if r.version:
        meta.append(f"v{r.version}")
    if r.category:
        meta.append(r.category)
    return " | ".join(meta)


def summary_line(output: SearchOutput) -> str:
    return (
        f"Searched {len(output.sources_searched)} sources • "
        f"{output.total_available:,} resources available"
        + (" (cached)" if output.cached else "")
    )


def display_results(output: SearchOutput, output_format: str = "table", console: Console = output_console):
    """Display results in various formats."""
    results = output.results

    if output_format == "json":
        console.print_json(results_to_json(output))
        return

    if not results:
        console.print("[yellow]No matching resources found.[/yellow]")
        console.print(f"[dim]{summary_line(output)}[/dim]")
        return

    if output_format == "simple":
        for r in results:
            console.print(f"[bold cyan]{escape(r.name)}[/bold cyan] ({r.type})")
            console.print(f"  {r.description}", markup=False)
            if r.url:
                console.print(f"  [link={r.url}]{r.url}[/link]")
            if r.install_command:
                console.print(f"  Install: {r.install_command}", markup=False)
            console.print(f"  [dim]\\[{escape(_meta_line(r))}][/dim]")
            console.print()
        console.print(f"[dim]{summary_line(output)}[/dim]")
        return

    # Table format (default)
    table = Table(
        title=f"Found {len(results)}",
        box=box.ROUNDED,
        show_lines=True
    )

    table.add_column("Name", style="cyan", no_wrap=True, max_width=25)
    table.add_column("Type", style="magenta", max_width=7)
    table.add_column("Source", style="green", max_width=18)
    table.add_column("Description", max_width=40)
    table.add_column("Stars", justify="right", max_width=6)
    table.add_column("Install", style="yellow", max_width=40)

    for r in results:
        desc = r.description[:80] + "..." if len(r.description) > 80 else r.description
        stars = f"{r.stars:g}" if r.stars else "-"
        table.add_row(
            escape(r.name),
            r.type,
            escape(r.source),
            escape(desc),
            stars,
            escape(r.install_command or "-"),
        )

    console.print(table)
    console.print(f"\n[dim]{summary_line(output)}[/dim]")


def display_sources(output: SourcesOutput, console: Console = output_console):
    """Show source health grouped by resource type."""
    table = Table(title=f"{output.total:,} total", box=box.ROUNDED)
    table.add_column("Source", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Count", justify="right")
    table.add_column("Last updated", style="blue")
    table.add_column("Status")

    for resource_type, title in TYPE_TITLES.items():
        group = [s for s in output.sources if s.type == resource_type]
        if not group:
            continue
        group_total = sum(s.count for s in group)
        table.add_section()
        table.add_row(f"[bold]{title} ({group_total:,})[/bold]", "", "", "", "")
        for source in group:
            table.add_row(
                source.name,
                source.type,
                f"{source.count:,}",
                source.last_updated,
                STATUS_MARKS.get(source.status, source.status),
            )

    console.print(table)
