"""Directory snapshot taken once at the start of a batch."""

from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from batchmv.errors import ValidationError


class DirectorySnapshot(BaseModel):
    """Names present in a directory when a batch begins.

    The snapshot is the only source of truth for "does this name exist" checks for the rest of
    the batch. It is never refreshed, so changes made to the directory by other processes while
    a batch is running are not seen.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path
    names: tuple[str, ...] = Field(default=(), description="Every entry name, sorted")
    files: tuple[str, ...] = Field(default=(), description="Regular file names, sorted")

    @classmethod
    def capture(cls, directory: Path) -> "DirectorySnapshot":
        """List ``directory`` once.

        Raises:
            ValidationError: If the path does not exist, is not a directory, or cannot be listed.
        """
        directory = Path(directory)
        if not directory.exists():
            raise ValidationError(f"Directory not found: {directory}", paths=[directory])
        if not directory.is_dir():
            raise ValidationError(f"Not a directory: {directory}", paths=[directory])

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
            files = tuple(entry.name for entry in entries if entry.is_file())
        except OSError as e:
            raise ValidationError(f"Cannot list directory {directory}: {e}", paths=[directory]) from e

        return cls(directory=directory, names=tuple(entry.name for entry in entries), files=files)

    def __contains__(self, name: object) -> bool:
        return name in self.name_set

    def __len__(self) -> int:
        return len(self.names)

    @cached_property
    def name_set(self) -> frozenset[str]:
        return frozenset(self.names)
