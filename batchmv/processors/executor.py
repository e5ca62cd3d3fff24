"""Apply an execution plan to the filesystem."""

import os
from pathlib import Path

from rich.console import Console
from tqdm import tqdm

from batchmv.errors import ExecutionError
from batchmv.models.rename import BatchSummary, ExecutionPlan, PostConditionViolation, RenameStep
from batchmv.processors.temp_names import DEFAULT_TEMP_PREFIX, find_temporary_names


console = Console()


class RenameExecutor:
    """Performs the moves of a plan strictly in order.

    There is no rollback: if a move fails, the steps already done stay done and the error
    reports exactly where the batch stopped.
    """

    def __init__(
        self,
        temp_prefix: str = DEFAULT_TEMP_PREFIX,
        show_progress: bool = False,
        console: Console = console,
    ) -> None:
        self.temp_prefix = temp_prefix
        self.show_progress = show_progress
        self.console = console

    def _move(self, directory: Path, step: RenameStep) -> None:
        """Move one file, refusing to overwrite anything already at the destination."""
        source = directory / step.actual_source
        target = directory / step.actual_target

        if os.path.lexists(target):
            # A case-only rename on a case-insensitive filesystem sees its own source here.
            same_file = os.path.lexists(source) and os.path.samefile(source, target)
            if not (same_file and step.actual_source.lower() == step.actual_target.lower()):
                raise FileExistsError(f"Target file already exists: {target}")

        source.rename(target)

    def preview(self, plan: ExecutionPlan) -> BatchSummary:
        """Report ``plan`` without touching the filesystem."""
        return BatchSummary(planned=len(plan), preview=True)

    def execute(self, plan: ExecutionPlan) -> BatchSummary:
        """Apply every step of ``plan`` and verify no temporary names remain.

        Returns:
            The execution summary. Stranded temporary names are reported on
            ``summary.violation`` and never cleaned up automatically.

        Raises:
            ExecutionError: If a move fails. Execution stops at the failing step.
        """
        directory = plan.directory
        steps = plan.steps

        for ix, step in enumerate(tqdm(steps, desc="Renaming files...", disable=not self.show_progress)):
            try:
                self._move(directory, step)
            except OSError as e:
                raise ExecutionError(
                    f"Failed to move '{step.actual_source}' to '{step.actual_target}' "
                    f"after {ix} of {len(steps)} step(s): {e}",
                    failed_step=step,
                    completed=steps[:ix],
                    remaining=steps[ix:],
                    error=e,
                    paths=[directory / step.actual_source, directory / step.actual_target],
                    summary=BatchSummary(planned=len(steps), executed=ix, failed=1),
                ) from e

        summary = BatchSummary(planned=len(steps), executed=len(steps))

        stranded = find_temporary_names(directory, self.temp_prefix)
        if stranded:
            summary.violation = PostConditionViolation(directory=directory, stranded=stranded)
            self.console.print(f"[bold yellow]Warning:[/bold yellow] {summary.violation}")

        return summary
