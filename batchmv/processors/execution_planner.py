"""Three-phase execution planning."""

from collections.abc import Iterable
from pathlib import Path

from batchmv.errors import ValidationError
from batchmv.models.rename import ConflictClass, ExecutionPlan, Phase, RenameStep, TemporaryAlias
from batchmv.processors.conflict_graph import ConflictGraph
from batchmv.processors.temp_names import DEFAULT_TEMP_PREFIX, TemporaryNameAllocator, is_temporary_name
from batchmv.snapshot import DirectorySnapshot


def simulate(steps: Iterable[RenameStep], names: Iterable[str]) -> set[str]:
    """Replay ``steps`` over a set of names and return the resulting listing.

    Raises:
        ValueError: If a step moves a name that is not present, or lands on one that is.
    """
    listing = set(names)
    for step in steps:
        if step.actual_source not in listing:
            raise ValueError(f"Step {step} moves a name that does not exist at that point")
        if step.actual_target in listing:
            raise ValueError(f"Step {step} would overwrite an existing name")
        listing.remove(step.actual_source)
        listing.add(step.actual_target)
    return listing


class ExecutionPlanner:
    """Orders the moves of a batch into stage-out, rename and stage-in phases.

    Stage-out parks every file occupying a wanted name under a temporary alias, so every move in
    the rename phase lands on a free name. Stage-in moves displaced bystanders (files occupying a
    target without being part of the batch) to the destination the caller picked for them.
    Planning never touches the filesystem.
    """

    def __init__(
        self,
        snapshot: DirectorySnapshot,
        bystander_destinations: dict[str, str] | None = None,
        temp_prefix: str = DEFAULT_TEMP_PREFIX,
    ) -> None:
        self.snapshot = snapshot
        self.bystander_destinations = dict(bystander_destinations or {})
        self.temp_prefix = temp_prefix

    def _path(self, name: str) -> Path:
        return self.snapshot.directory / name

    def _check_bystanders(self, graph: ConflictGraph) -> list[str]:
        """Return displaced bystanders in mapping order; fail if any has nowhere to go."""
        bystanders = [graph.mappings[ix].target_file for ix in graph.indices(ConflictClass.EXTERNAL_CONFLICT)]

        unplaced = [name for name in bystanders if name not in self.bystander_destinations]
        if unplaced:
            raise ValidationError(
                f"Target name(s) already taken by file(s) outside the batch: {', '.join(unplaced)}. "
                "Add a rename for them or give them a destination.",
                paths=[self._path(name) for name in unplaced],
            )

        unused = [name for name in self.bystander_destinations if name not in bystanders]
        if unused:
            raise ValidationError(
                f"Destination given for file(s) the batch does not displace: {', '.join(unused)}.",
                paths=[self._path(name) for name in unused],
            )

        return bystanders

    def _check_destinations(self, graph: ConflictGraph) -> None:
        vacated = graph.sources
        targets = graph.targets
        seen: set[str] = set()

        for bystander, destination in self.bystander_destinations.items():
            problem = None
            if not destination or "/" in destination or destination in (".", ".."):
                problem = "is not a valid filename"
            elif is_temporary_name(destination, self.temp_prefix):
                problem = f"uses the reserved temporary prefix '{self.temp_prefix}'"
            elif destination in targets:
                problem = "is already a rename target"
            elif destination in seen:
                problem = "is given to more than one file"
            elif destination in self.snapshot and destination not in vacated:
                problem = "is already taken"

            if problem is not None:
                raise ValidationError(
                    f"Destination '{destination}' for '{bystander}' {problem}.",
                    paths=[self._path(bystander), self._path(destination)],
                )
            seen.add(destination)

    def plan(self, graph: ConflictGraph) -> ExecutionPlan:
        """Build the ordered plan for ``graph``.

        Raises:
            ValidationError: If a bystander has no destination, or a destination is unusable.
        """
        bystanders = self._check_bystanders(graph)
        self._check_destinations(graph)

        allocator = TemporaryNameAllocator(
            reserved=set(self.snapshot.names) | graph.targets | set(self.bystander_destinations.values()),
            prefix=self.temp_prefix,
        )

        # Sources that another mapping wants to land on, each parked once.
        staged = sorted({owner for owner in graph.depends_on if owner is not None})
        staged_aliases: dict[int, TemporaryAlias] = {
            ix: allocator.allocate(graph.mappings[ix].source_file, ConflictClass.CHAINED_CONFLICT) for ix in staged
        }
        bystander_aliases = [allocator.allocate(name, ConflictClass.EXTERNAL_CONFLICT) for name in bystanders]

        steps: list[RenameStep] = [
            RenameStep(actual_source=alias.original_file, actual_target=alias.temp_name, phase=Phase.STAGE_OUT)
            for alias in allocator.aliases
        ]

        for ix, mapping in enumerate(graph.mappings):
            alias = staged_aliases.get(ix)
            source = alias.temp_name if alias is not None else mapping.source_file
            steps.append(RenameStep(actual_source=source, actual_target=mapping.target_file, phase=Phase.RENAME))

        for alias in bystander_aliases:
            steps.append(
                RenameStep(
                    actual_source=alias.temp_name,
                    actual_target=self.bystander_destinations[alias.original_file],
                    phase=Phase.STAGE_IN,
                )
            )

        plan = ExecutionPlan(
            directory=self.snapshot.directory,
            mappings=graph.mappings,
            aliases=allocator.aliases,
            steps=steps,
        )

        final = simulate(plan.steps, self.snapshot.names)
        leftovers = sorted(final & {alias.temp_name for alias in allocator.aliases})
        if leftovers:
            raise RuntimeError(f"Plan leaves temporary names behind: {leftovers}")

        return plan
