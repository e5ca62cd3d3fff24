"""CLI entrypoints."""

import json
from collections.abc import Callable
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from batchmv.errors import BatchRenameError, ExecutionError
from batchmv.models.rename import BatchReport, MatchOutcome, Phase
from batchmv.processors.batch_renamer import BatchRenamer
from batchmv.processors.temp_names import DEFAULT_TEMP_PREFIX, check_temp_prefix, find_temporary_names


console = Console()

ENVVAR_PREFIX = "BATCHMV"

# Exit status when a run leaves files under temporary names.
EXIT_STRANDED = 2

OUTCOME_STYLES = {
    MatchOutcome.MATCHED: "green",
    MatchOutcome.AMBIGUOUS: "yellow",
    MatchOutcome.UNMATCHED: "red",
}

PHASE_STYLES = {
    Phase.STAGE_OUT: "magenta",
    Phase.RENAME: "cyan",
    Phase.STAGE_IN: "blue",
}


def _split_pair(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> list[tuple[str, str]]:
    """Parse repeated ``LEFT=RIGHT`` option values."""
    pairs = []
    for value in values:
        left, sep, right = value.partition("=")
        if not sep or not left:
            raise click.BadParameter(f"Expected LEFT=RIGHT, got '{value}'.", ctx=ctx, param=param)
        pairs.append((left, right))
    return pairs


def _check_prefix(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return check_temp_prefix(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e


def _load_map_file(map_file: str | None) -> list[tuple[str, str]]:
    if map_file is None:
        return []
    with open(map_file, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise click.BadParameter("Map file must contain a JSON object of strings.", param_hint="--map-file")
    return list(data.items())


def batch_options(func: Callable[..., None]) -> Callable[..., None]:
    """Options shared by every command that plans a batch."""
    options = [
        click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path)),
        click.option(
            "-m",
            "--map",
            "pairs",
            multiple=True,
            callback=_split_pair,
            metavar="MATCH=REPLACEMENT",
            help="Rename the file whose name contains MATCH, substituting REPLACEMENT. Repeatable.",
        ),
        click.option(
            "--map-file",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="JSON object of MATCH -> REPLACEMENT pairs, applied before any --map pairs.",
        ),
        click.option(
            "--park",
            "parked",
            multiple=True,
            callback=_split_pair,
            metavar="BYSTANDER=DEST",
            help="Move a file occupying a wanted name, but not itself renamed, to DEST. Repeatable.",
        ),
        click.option(
            "--temp-prefix",
            type=str,
            default=DEFAULT_TEMP_PREFIX,
            callback=_check_prefix,
            help="Reserved prefix for temporary names.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _print_outcomes(report: BatchReport) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Match", style="cyan")
    table.add_column("Replacement", style="cyan")
    table.add_column("Outcome")
    table.add_column("Source")
    table.add_column("Target", style="green")

    for outcome in report.outcomes:
        style = OUTCOME_STYLES[outcome.outcome]
        mapping = outcome.mapping
        table.add_row(
            str(outcome.request_index),
            outcome.request.match_token,
            outcome.request.replacement_token,
            f"[{style}]{outcome.outcome.value}[/{style}]",
            mapping.source_file if mapping else "",
            mapping.target_file if mapping else "",
        )

    console.print(table)


def _print_plan(report: BatchReport) -> None:
    plan = report.plan
    if not plan.steps:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Step", justify="right")
    table.add_column("Phase")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")

    for ix, step in enumerate(plan.steps, start=1):
        style = PHASE_STYLES[step.phase]
        table.add_row(str(ix), f"[{style}]{step.phase.value}[/{style}]", step.actual_source, step.actual_target)

    console.print()
    console.print("[bold]Planned moves:[/bold]")
    console.print(table)
    console.print(
        f"  Stage-out: [cyan]{len(plan.stage_out)}[/cyan], "
        f"rename: [cyan]{len(plan.renames)}[/cyan], "
        f"stage-in: [cyan]{len(plan.stage_in)}[/cyan]"
    )


def _prepare(
    renamer: BatchRenamer,
    directory: Path,
    map_file: str | None,
    pairs: list[tuple[str, str]],
    parked: list[tuple[str, str]],
) -> BatchReport:
    requests = _load_map_file(map_file) + list(pairs)
    try:
        return renamer.prepare(directory, requests, bystander_destinations=dict(parked))
    except BatchRenameError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise SystemExit(1) from e


@click.group(context_settings=dict(show_default=True))
def cli() -> None:
    """batchmv - Rename many files at once without overwriting any of them."""
    pass


@cli.command("rename")
@batch_options
@click.option("--preview", is_flag=True, default=False, help="Only show the planned moves.")
@click.option(
    "-y",
    "--yes",
    is_flag=True,
    default=False,
    help="Automatically apply renames without asking for confirmation.",
)
@click.option("--progress/--no-progress", default=False, help="Show a progress bar while moving files.")
def rename(
    directory: Path,
    pairs: list[tuple[str, str]],
    map_file: str | None,
    parked: list[tuple[str, str]],
    temp_prefix: str,
    preview: bool,
    yes: bool,
    progress: bool,
) -> None:
    """Rename files in DIRECTORY, handling chains and swaps through temporary names.

    Examples:

        batchmv rename ./season1 -m ep1=ep2 -m ep2=ep1

        batchmv rename ./movies -m movie1=showA.mp4 --park showA.mp4=showA-old.mp4
    """
    renamer = BatchRenamer(temp_prefix=temp_prefix, show_progress=progress, console=console)
    report = _prepare(renamer, directory, map_file, pairs, parked)

    _print_outcomes(report)
    _print_plan(report)
    console.print()

    if not report.plan.steps:
        console.print("[yellow]Nothing to rename.[/yellow]")
        return

    if preview:
        console.print(renamer.apply(report, preview=True).summary.summary())
        console.print("[yellow]Preview only. No files were renamed.[/yellow]")
        return

    if not yes and not click.confirm("Apply these renames?", default=False):
        console.print("[yellow]Aborted. No files were renamed.[/yellow]")
        return

    console.print("[cyan]Applying renames...[/cyan]")
    try:
        report = renamer.apply(report)
    except ExecutionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        console.print(f"  Completed moves: [cyan]{len(e.completed)}[/cyan]")
        console.print(f"  Remaining moves: [cyan]{len(e.remaining)}[/cyan]")
        for step in e.remaining:
            console.print(f"    [dim]{step}[/dim]")
        console.print(f"Run [bold]batchmv check {directory}[/bold] to list files left under temporary names.")
        raise SystemExit(1) from e

    summary = report.summary
    console.print(summary.summary())
    if summary.violation is not None:
        console.print("[bold yellow]Some files were left under temporary names:[/bold yellow]")
        for name in summary.stranded:
            console.print(f"  [yellow]{name}[/yellow]")
        raise SystemExit(EXIT_STRANDED)

    console.print(f"[bold green]Successfully renamed {len(report.plan.mappings)} file(s).[/bold green]")


@cli.command("plan")
@batch_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the plan as JSON.")
def plan(
    directory: Path,
    pairs: list[tuple[str, str]],
    map_file: str | None,
    parked: list[tuple[str, str]],
    temp_prefix: str,
    as_json: bool,
) -> None:
    """Show the moves a batch would perform in DIRECTORY, without performing them."""
    renamer = BatchRenamer(temp_prefix=temp_prefix, console=Console(stderr=True) if as_json else console)
    report = renamer.apply(_prepare(renamer, directory, map_file, pairs, parked), preview=True)

    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return

    _print_outcomes(report)
    _print_plan(report)
    console.print()
    console.print(report.summary.summary())


@cli.command("check")
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--temp-prefix",
    type=str,
    default=DEFAULT_TEMP_PREFIX,
    callback=_check_prefix,
    help="Reserved prefix for temporary names.",
)
def check(directory: Path, temp_prefix: str) -> None:
    """List files in DIRECTORY stranded under temporary names by an interrupted batch."""
    stranded = find_temporary_names(directory, temp_prefix)
    if not stranded:
        console.print(f"[green]No temporary names found in {directory}.[/green]")
        return

    console.print(f"[bold yellow]{len(stranded)} file(s) under temporary names in {directory}:[/bold yellow]")
    for name in stranded:
        console.print(f"  {name}")
    console.print("[dim]Rename them by hand; batchmv never deletes or guesses names for them.[/dim]")
    raise SystemExit(EXIT_STRANDED)


def main() -> None:
    cli(auto_envvar_prefix=ENVVAR_PREFIX)
