"""Error taxonomy for the reel engine.

Contract violations (InvalidTarget, EmptyWeightPool, NotAligned) mean a caller
sequencing bug or bad catalog data. AllocationFailed and ClaimFailed are
expected operational failures that the orchestrator turns into state changes.
"""


class ReelError(Exception):
    """Base class for reel engine errors."""


class InvalidTarget(ReelError):
    """Target item is not present in the catalog."""

    def __init__(self, target_id: str):
        super().__init__(f"Target item not in catalog: {target_id!r}")
        self.target_id = target_id


class EmptyWeightPool(ReelError):
    """Candidate set has no positive total weight."""

    def __init__(self, candidate_count: int):
        super().__init__(f"No drawable weight among {candidate_count} candidates")
        self.candidate_count = candidate_count


class NotAligned(ReelError):
    """Visible cards were requested from a reel that is not grid-snapped."""

    def __init__(self, row: int, found: int, expected: int):
        super().__init__(f"Reel {row} not aligned: {found}/{expected} columns visible")
        self.row = row
        self.found = found
        self.expected = expected


class AllocationFailed(ReelError):
    """The prize allocator failed or timed out."""


class ClaimFailed(ReelError):
    """The reward could not be claimed. Recoverable: the user may retry."""
