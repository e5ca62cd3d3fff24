"""Batch rename processor tying resolution, planning and execution together."""

from collections.abc import Iterable, Mapping
from pathlib import Path

from rich.console import Console

from batchmv.errors import ValidationError
from batchmv.models.rename import BatchReport, RenameRequest
from batchmv.processors.conflict_graph import build_conflict_graph
from batchmv.processors.execution_planner import ExecutionPlanner
from batchmv.processors.executor import RenameExecutor
from batchmv.processors.mapping_resolver import MappingResolver
from batchmv.processors.temp_names import DEFAULT_TEMP_PREFIX, check_temp_prefix, is_temporary_name
from batchmv.snapshot import DirectorySnapshot


console = Console()

RequestsInput = Mapping[str, str] | Iterable[tuple[str, str]] | Iterable[RenameRequest]


class BatchRenamer:
    """Processor for renaming a batch of files in one directory without losing any of them."""

    def __init__(
        self,
        temp_prefix: str = DEFAULT_TEMP_PREFIX,
        show_progress: bool = False,
        console: Console = console,
    ) -> None:
        """Initialize the batch renamer.

        Args:
            temp_prefix: Reserved prefix for temporary names.
            show_progress: Draw a progress bar while moving files.
            console: Rich console receiving status messages.

        Raises:
            ValidationError: If ``temp_prefix`` cannot start a plain filename.
        """
        try:
            self.temp_prefix = check_temp_prefix(temp_prefix)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.console = console
        self.executor = RenameExecutor(temp_prefix=temp_prefix, show_progress=show_progress, console=console)

    def _build_requests(self, requests: RequestsInput) -> list[RenameRequest]:
        """Normalize caller input into a list of requests.

        Raises:
            ValidationError: If there are no requests, or a request has an empty match token.
        """
        items = requests.items() if isinstance(requests, Mapping) else requests

        built: list[RenameRequest] = []
        for item in items:
            if isinstance(item, RenameRequest):
                built.append(item)
            else:
                match_token, replacement_token = item
                built.append(RenameRequest(match_token=match_token, replacement_token=replacement_token))

        if not built:
            raise ValidationError("No rename requests given.")

        for index, request in enumerate(built):
            if not request.match_token:
                raise ValidationError(f"Request {index} has an empty match token.")

        return built

    def _snapshot(self, directory: Path) -> DirectorySnapshot:
        snapshot = DirectorySnapshot.capture(directory)

        leftovers = [name for name in snapshot.names if is_temporary_name(name, self.temp_prefix)]
        if leftovers:
            raise ValidationError(
                f"Directory still holds file(s) under temporary names from an earlier run: {', '.join(leftovers)}. "
                "Rename them by hand before starting a new batch.",
                paths=[snapshot.directory / name for name in leftovers],
            )

        return snapshot

    def prepare(
        self,
        directory: Path,
        requests: RequestsInput,
        bystander_destinations: dict[str, str] | None = None,
    ) -> BatchReport:
        """Resolve requests and compute the execution plan. Never touches the filesystem.

        Args:
            directory: Directory holding the files to rename.
            requests: ``match -> replacement`` pairs, in batch order.
            bystander_destinations: Where to move files that occupy a wanted name without being
                part of the batch, keyed by their current name.

        Returns:
            BatchReport with per-request outcomes and the plan (no summary yet).

        Raises:
            ValidationError: If the batch cannot be executed safely.
        """
        built = self._build_requests(requests)
        snapshot = self._snapshot(Path(directory))

        outcomes = MappingResolver(snapshot).resolve_all(built)
        for outcome in outcomes:
            warning = outcome.warning
            if warning is not None:
                self.console.print(f"[yellow]Warning:[/yellow] {warning.message}")

        mappings = [outcome.mapping for outcome in outcomes if outcome.mapping is not None]
        graph = build_conflict_graph(mappings, snapshot, temp_prefix=self.temp_prefix)
        for mapping in graph.noops:
            self.console.print(f"[dim]'{mapping.source_file}' already has the requested name; nothing to do.[/dim]")
        for cycle in graph.cycles():
            names = " -> ".join(graph.mappings[ix].source_file for ix in cycle)
            self.console.print(f"[dim]Rename cycle routed through temporary names: {names}[/dim]")

        planner = ExecutionPlanner(snapshot, bystander_destinations=bystander_destinations, temp_prefix=self.temp_prefix)
        plan = planner.plan(graph)

        return BatchReport(directory=snapshot.directory, outcomes=outcomes, plan=plan)

    def apply(self, report: BatchReport, preview: bool = False) -> BatchReport:
        """Execute (or preview) a prepared batch.

        Raises:
            ExecutionError: If a move fails. Completed moves are not undone.
        """
        if preview:
            summary = self.executor.preview(report.plan)
        else:
            summary = self.executor.execute(report.plan)
            self.console.print(f"[green]Renamed {len(report.plan.mappings)} file(s) in {report.directory}.[/green]")
        return report.model_copy(update={"summary": summary})

    def run(
        self,
        directory: Path,
        requests: RequestsInput,
        preview: bool = False,
        bystander_destinations: dict[str, str] | None = None,
    ) -> BatchReport:
        """Prepare and apply a batch in one call."""
        report = self.prepare(directory, requests, bystander_destinations=bystander_destinations)
        return self.apply(report, preview=preview)
