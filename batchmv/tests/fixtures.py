"""Helpers for building test directories."""

from pathlib import Path

from rich.console import Console


def make_files(directory: Path, names: list[str]) -> dict[str, str]:
    """Create one file per name whose content is its own original name."""
    for name in names:
        (directory / name).write_text(name)
    return {name: name for name in names}


def listing(directory: Path) -> set[str]:
    return {entry.name for entry in directory.iterdir()}


def contents(directory: Path) -> dict[str, str]:
    """Map every file in ``directory`` to its content."""
    return {entry.name: entry.read_text() for entry in directory.iterdir() if entry.is_file()}


def quiet_console() -> Console:
    return Console(quiet=True)
