"""Resolve rename requests against a directory snapshot."""

import re
from pathlib import PurePath

from batchmv.models.rename import MatchOutcome, RenameRequest, RequestOutcome, ResolvedMapping
from batchmv.snapshot import DirectorySnapshot


# A replacement token ending in ".<1-5 alphanumerics, at least one letter>" carries its own
# extension, e.g. "showA.mp4". Purely numeric suffixes ("v1.2") are treated as part of the name.
EXTENSION_PATTERN = re.compile(r"^\.(?=[0-9A-Za-z]*[A-Za-z])[0-9A-Za-z]{1,5}$")


def split_extension(name: str) -> tuple[str, str]:
    """Split a filename into (stem, extension), keeping the dot on the extension."""
    path = PurePath(name)
    return path.stem, path.suffix


def explicit_extension(token: str) -> str | None:
    """Return the extension carried by ``token``, if it has a recognizable one."""
    stem, suffix = split_extension(token)
    if stem and EXTENSION_PATTERN.match(suffix):
        return suffix
    return None


class MappingResolver:
    """Turns ``match -> replacement`` requests into concrete ``source -> target`` filenames.

    Matching is a plain substring test against each regular file's stem. The resolver never
    touches the filesystem; everything it knows comes from the snapshot.
    """

    def __init__(self, snapshot: DirectorySnapshot) -> None:
        self.snapshot = snapshot

    def _find_candidates(self, match_token: str) -> list[str]:
        """Return every file whose stem contains ``match_token``, in lexicographic order."""
        return sorted(name for name in self.snapshot.files if match_token in split_extension(name)[0])

    def build_target(self, source_file: str, request: RenameRequest) -> str:
        """Compute the target filename for ``source_file``.

        The first occurrence of the match token in the source's stem is replaced. The target's
        extension is the one carried by the replacement token if present, else the source's.
        """
        stem, suffix = split_extension(source_file)
        replacement = request.replacement_token

        extension = explicit_extension(replacement)
        if extension is not None:
            replacement = replacement[: -len(extension)]
            suffix = extension

        return stem.replace(request.match_token, replacement, 1) + suffix

    def resolve(self, request: RenameRequest, request_index: int) -> RequestOutcome:
        """Resolve a single request.

        Ambiguous matches are broken by picking the lexicographically smallest filename.
        """
        candidates = self._find_candidates(request.match_token)

        if not candidates:
            return RequestOutcome(request_index=request_index, request=request, outcome=MatchOutcome.UNMATCHED)

        source_file = candidates[0]
        mapping = ResolvedMapping(
            source_file=source_file,
            target_file=self.build_target(source_file, request),
            request_index=request_index,
        )
        outcome = MatchOutcome.MATCHED if len(candidates) == 1 else MatchOutcome.AMBIGUOUS

        return RequestOutcome(
            request_index=request_index,
            request=request,
            outcome=outcome,
            candidates=candidates,
            mapping=mapping,
        )

    def resolve_all(self, requests: list[RenameRequest]) -> list[RequestOutcome]:
        """Resolve every request, preserving request order."""
        return [self.resolve(request, index) for index, request in enumerate(requests)]
