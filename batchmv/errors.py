"""Exceptions raised while planning or executing a rename batch."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from batchmv.models.rename import BatchSummary, RenameStep


class BatchRenameError(Exception):
    """Base class for errors that stop a rename batch.

    Attributes:
        paths: Every filesystem path involved in the failure.
    """

    def __init__(self, message: str, paths: Iterable[Path] = ()) -> None:
        super().__init__(message)
        self.paths = list(paths)


class ValidationError(BatchRenameError):
    """The batch cannot be executed safely. Raised before any file is moved."""


class ExecutionError(BatchRenameError):
    """A move failed part-way through a batch.

    Completed steps are not rolled back. The directory is left exactly as the
    ``completed`` steps describe, and ``remaining`` lists what was never attempted
    (starting with ``failed_step``).
    """

    def __init__(
        self,
        message: str,
        failed_step: RenameStep,
        completed: list[RenameStep],
        remaining: list[RenameStep],
        error: OSError,
        paths: Iterable[Path] = (),
        summary: BatchSummary | None = None,
    ) -> None:
        super().__init__(message, paths)
        self.summary = summary
        self.failed_step = failed_step
        self.completed = completed
        self.remaining = remaining
        self.error = error
