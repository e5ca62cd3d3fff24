"""Temporary placeholder names for files that must be moved out of the way."""

import re
from collections.abc import Iterable
from pathlib import Path

from batchmv.models.rename import ConflictClass, TemporaryAlias
from batchmv.processors.mapping_resolver import split_extension


DEFAULT_TEMP_PREFIX = ".batchmv-tmp-"

# Width of the zero-padded counter in generated names.
COUNTER_WIDTH = 4


def check_temp_prefix(prefix: str) -> str:
    """Return ``prefix`` if it can start a plain filename.

    Raises:
        ValueError: If the prefix is empty or contains a path separator.
    """
    if not prefix or "/" in prefix or "\\" in prefix or "\0" in prefix:
        raise ValueError(f"Invalid temporary name prefix: {prefix!r}")
    return prefix


def temporary_name_pattern(prefix: str = DEFAULT_TEMP_PREFIX) -> re.Pattern[str]:
    """Pattern matching every name the allocator can generate for ``prefix``."""
    return re.compile(rf"^{re.escape(prefix)}\d+(\.[^.]*)?$")


def is_temporary_name(name: str, prefix: str = DEFAULT_TEMP_PREFIX) -> bool:
    return temporary_name_pattern(prefix).match(name) is not None


def find_temporary_names(directory: Path, prefix: str = DEFAULT_TEMP_PREFIX) -> list[str]:
    """Scan ``directory`` for names left under temporary aliases.

    Nothing is deleted or renamed; stranded files are for the user to sort out.
    """
    pattern = temporary_name_pattern(prefix)
    return sorted(entry.name for entry in Path(directory).iterdir() if pattern.match(entry.name))


class TemporaryNameAllocator:
    """Hands out collision-free temporary names for a single batch.

    Names are ``<prefix><counter><original extension>``. The counter starts at 1 for every
    allocator, so the same batch over the same snapshot always yields the same names.
    """

    def __init__(self, reserved: Iterable[str], prefix: str = DEFAULT_TEMP_PREFIX) -> None:
        """Initialize the allocator.

        Args:
            reserved: Names that must never be handed out: the snapshot listing plus every
                final name the batch will create.
            prefix: Reserved prefix for generated names.
        """
        self.prefix = check_temp_prefix(prefix)
        self._taken: set[str] = set(reserved)
        self._counter = 0
        self.aliases: list[TemporaryAlias] = []

    def _next_name(self, extension: str) -> str:
        self._counter += 1
        return f"{self.prefix}{self._counter:0{COUNTER_WIDTH}d}{extension}"

    def allocate(self, original_file: str, reason: ConflictClass) -> TemporaryAlias:
        """Allocate a temporary alias for ``original_file``."""
        if reason == ConflictClass.FREE:
            raise ValueError(f"Free names never need a temporary alias: {original_file}")

        _, extension = split_extension(original_file)
        temp_name = self._next_name(extension)
        while temp_name in self._taken:
            temp_name = self._next_name(extension)

        self._taken.add(temp_name)
        alias = TemporaryAlias(original_file=original_file, temp_name=temp_name, reason=reason)
        self.aliases.append(alias)
        return alias

    def is_temporary_name(self, name: str) -> bool:
        return is_temporary_name(name, self.prefix)
