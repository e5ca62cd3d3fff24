"""Dependency graph over resolved mappings."""

import os
from collections import defaultdict
from dataclasses import dataclass, field

from batchmv.errors import ValidationError
from batchmv.models.rename import ConflictClass, ResolvedMapping
from batchmv.processors.temp_names import DEFAULT_TEMP_PREFIX, is_temporary_name
from batchmv.snapshot import DirectorySnapshot


@dataclass
class ConflictGraph:
    """Mappings of a batch with their target classification and dependency edges.

    Mappings are stored once and referred to by index everywhere else. ``depends_on[i]`` is the
    index of the mapping whose source occupies mapping ``i``'s target, or None. Since sources are
    unique, each mapping has at most one outgoing edge; following the edges traces rename chains,
    and a chain that returns to its start is a cycle.
    """

    mappings: list[ResolvedMapping]
    classes: list[ConflictClass]
    depends_on: list[int | None]
    noops: list[ResolvedMapping] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.mappings)

    @property
    def targets(self) -> set[str]:
        return {mapping.target_file for mapping in self.mappings}

    @property
    def sources(self) -> set[str]:
        return {mapping.source_file for mapping in self.mappings}

    def indices(self, conflict_class: ConflictClass) -> list[int]:
        return [ix for ix, cls in enumerate(self.classes) if cls == conflict_class]

    def chain(self, index: int) -> list[int]:
        """Follow dependency edges from ``index``. Stops at a free target or on closing a cycle."""
        path = [index]
        seen = {index}
        current = self.depends_on[index]
        while current is not None and current not in seen:
            path.append(current)
            seen.add(current)
            current = self.depends_on[current]
        return path

    def is_cyclic(self, index: int) -> bool:
        last = self.chain(index)[-1]
        return self.depends_on[last] == index

    def cycles(self) -> list[list[int]]:
        """Every closed rename cycle, each listed once starting from its lowest index.

        Every mapping is visited once: a walk stops on reaching a mapping finished by an earlier
        walk, and a cycle is recorded when it reaches a mapping on its own path.
        """
        done = [False] * len(self.mappings)
        found: list[list[int]] = []
        for start in range(len(self.mappings)):
            path: list[int] = []
            position: dict[int, int] = {}
            current = start
            while current is not None and not done[current] and current not in position:
                position[current] = len(path)
                path.append(current)
                current = self.depends_on[current]

            if current is not None and current in position:
                cycle = path[position[current]:]
                lowest = cycle.index(min(cycle))
                found.append(cycle[lowest:] + cycle[:lowest])

            for ix in path:
                done[ix] = True

        return sorted(found)


def _check_target_name(mapping: ResolvedMapping, snapshot: DirectorySnapshot, temp_prefix: str) -> None:
    target = mapping.target_file
    problem = None
    if not target or target in (".", ".."):
        problem = "is empty"
    elif "/" in target or (os.sep != "/" and os.sep in target) or "\0" in target:
        problem = "contains a path separator"
    elif is_temporary_name(target, temp_prefix):
        problem = f"uses the reserved temporary prefix '{temp_prefix}'"
    elif target.startswith(".") and not mapping.source_file.startswith("."):
        problem = "has an empty name before its extension"

    if problem is not None:
        raise ValidationError(
            f"Target name '{target}' for '{mapping.source_file}' {problem}.",
            paths=[snapshot.directory / mapping.source_file],
        )


def _check_unique(mappings: list[ResolvedMapping], snapshot: DirectorySnapshot, attribute: str, what: str) -> None:
    groups: dict[str, list[ResolvedMapping]] = defaultdict(list)
    for mapping in mappings:
        groups[getattr(mapping, attribute)].append(mapping)

    for name, group in groups.items():
        if len(group) > 1:
            requests = ", ".join(str(m.request_index) for m in group)
            raise ValidationError(
                f"Requests {requests} all resolve to the same {what} '{name}'.",
                paths=[snapshot.directory / m.source_file for m in group] + [snapshot.directory / name],
            )


def build_conflict_graph(
    mappings: list[ResolvedMapping],
    snapshot: DirectorySnapshot,
    temp_prefix: str = DEFAULT_TEMP_PREFIX,
) -> ConflictGraph:
    """Validate the mappings of a batch and classify every target.

    Self-renames are dropped as no-ops before classification.

    Raises:
        ValidationError: On an invalid target name, two mappings sharing a source, or two
            mappings sharing a target.
    """
    active = [mapping for mapping in mappings if not mapping.is_noop]
    noops = [mapping for mapping in mappings if mapping.is_noop]

    for mapping in active:
        _check_target_name(mapping, snapshot, temp_prefix)
    _check_unique(mappings, snapshot, "source_file", "source file")
    _check_unique(mappings, snapshot, "target_file", "target")

    source_index = {mapping.source_file: ix for ix, mapping in enumerate(active)}

    classes: list[ConflictClass] = []
    depends_on: list[int | None] = []
    for mapping in active:
        owner = source_index.get(mapping.target_file)
        depends_on.append(owner)
        if owner is not None:
            classes.append(ConflictClass.CHAINED_CONFLICT)
        elif mapping.target_file in snapshot:
            classes.append(ConflictClass.EXTERNAL_CONFLICT)
        else:
            classes.append(ConflictClass.FREE)

    return ConflictGraph(mappings=active, classes=classes, depends_on=depends_on, noops=noops)
