"""Rename batch data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class MatchOutcome(str, Enum):
    """How a rename request matched the directory listing."""

    MATCHED = "matched"
    UNMATCHED = "unmatched"
    AMBIGUOUS = "ambiguous"


class ConflictClass(str, Enum):
    """State of a mapping's target name before the batch runs."""

    FREE = "free"
    EXTERNAL_CONFLICT = "external-conflict"  # occupied by a file outside the batch
    CHAINED_CONFLICT = "chained-conflict"  # occupied by another mapping's source


class Phase(str, Enum):
    """Execution phase a rename step belongs to."""

    STAGE_OUT = "stage-out"
    RENAME = "rename"
    STAGE_IN = "stage-in"


class RenameRequest(BaseModel):
    """A desired rename, expressed as a substring substitution."""

    model_config = ConfigDict(frozen=True)

    match_token: str = Field(description="Substring identifying the file to rename")
    replacement_token: str = Field(description="Text substituted for the match; may carry a new extension")

    def __str__(self) -> str:
        return f"RenameRequest('{self.match_token}' -> '{self.replacement_token}')"


class ResolvedMapping(BaseModel):
    """A request resolved against the directory listing."""

    model_config = ConfigDict(frozen=True)

    source_file: str = Field(description="Existing filename (without directory path)")
    target_file: str = Field(description="Desired filename (without directory path)")
    request_index: int = Field(description="Position of the originating request in the batch", ge=0)

    @property
    def is_noop(self) -> bool:
        return self.source_file == self.target_file

    def __str__(self) -> str:
        return f"ResolvedMapping('{self.source_file}' -> '{self.target_file}', request={self.request_index})"


class ResolutionWarning(BaseModel):
    """Non-fatal problem found while resolving a request."""

    request_index: int
    outcome: MatchOutcome
    message: str


class RequestOutcome(BaseModel):
    """Result of resolving a single request."""

    request_index: int = Field(ge=0)
    request: RenameRequest
    outcome: MatchOutcome
    candidates: list[str] = Field(
        default_factory=list,
        description="Every filename that matched, in lexicographic order",
    )
    mapping: ResolvedMapping | None = None

    @property
    def warning(self) -> ResolutionWarning | None:
        """Warning to surface to the caller, if the request did not match cleanly."""
        if self.outcome == MatchOutcome.UNMATCHED:
            message = f"No file matches '{self.request.match_token}'; request skipped."
        elif self.outcome == MatchOutcome.AMBIGUOUS:
            message = (
                f"'{self.request.match_token}' matches {len(self.candidates)} files "
                f"({', '.join(self.candidates)}); using '{self.candidates[0]}'."
            )
        else:
            return None
        return ResolutionWarning(request_index=self.request_index, outcome=self.outcome, message=message)


class TemporaryAlias(BaseModel):
    """A placeholder name a file is parked under while the batch runs."""

    model_config = ConfigDict(frozen=True)

    original_file: str
    temp_name: str
    reason: ConflictClass

    def __str__(self) -> str:
        return f"TemporaryAlias('{self.original_file}' -> '{self.temp_name}', reason={self.reason.value})"


class RenameStep(BaseModel):
    """A single literal move to perform inside the batch directory."""

    model_config = ConfigDict(frozen=True)

    actual_source: str
    actual_target: str
    phase: Phase

    def __str__(self) -> str:
        return f"[{self.phase.value}] {self.actual_source} -> {self.actual_target}"


class ExecutionPlan(BaseModel):
    """Ordered moves that carry a directory from its snapshot to the requested end state."""

    directory: Path
    mappings: list[ResolvedMapping] = Field(default_factory=list)
    aliases: list[TemporaryAlias] = Field(default_factory=list)
    steps: list[RenameStep] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    def phase_steps(self, phase: Phase) -> list[RenameStep]:
        return [step for step in self.steps if step.phase == phase]

    @property
    def stage_out(self) -> list[RenameStep]:
        return self.phase_steps(Phase.STAGE_OUT)

    @property
    def renames(self) -> list[RenameStep]:
        return self.phase_steps(Phase.RENAME)

    @property
    def stage_in(self) -> list[RenameStep]:
        return self.phase_steps(Phase.STAGE_IN)


class PostConditionViolation(BaseModel):
    """Files left under temporary names after a run that otherwise succeeded."""

    directory: Path
    stranded: list[str]

    def __str__(self) -> str:
        return f"{len(self.stranded)} file(s) left under temporary names in {self.directory}: {', '.join(self.stranded)}"


class BatchSummary(BaseModel):
    """Counts reported after executing (or previewing) a plan."""

    planned: int = 0
    executed: int = 0
    failed: int = 0
    preview: bool = False
    violation: PostConditionViolation | None = None

    @property
    def stranded(self) -> list[str]:
        return self.violation.stranded if self.violation else []

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "Rename Summary:" if not self.preview else "Rename Summary (preview):",
            f"  Planned moves: {self.planned}",
            f"  Executed moves: {self.executed}",
            f"  Failed moves: {self.failed}",
            f"  Stranded temporary names: {len(self.stranded)}",
        ]
        return "\n".join(lines)


class BatchReport(BaseModel):
    """Everything a batch run produces for the caller."""

    directory: Path
    outcomes: list[RequestOutcome] = Field(default_factory=list)
    plan: ExecutionPlan
    summary: BatchSummary | None = None

    @property
    def warnings(self) -> list[ResolutionWarning]:
        return [outcome.warning for outcome in self.outcomes if outcome.warning is not None]
