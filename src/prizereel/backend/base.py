"""Collaborator interfaces for prize allocation and reward claims."""

from abc import ABC, abstractmethod

from prizereel.catalog.models import ClaimResult, Item, PlayResult


class PrizeAllocator(ABC):
    """Decides which item a play is worth. The reel only animates the answer."""

    @abstractmethod
    async def play(self) -> PlayResult:
        """Allocate a prize.

        Raises:
            AllocationFailed: If no prize could be allocated
        """


class RewardClaimer(ABC):
    """Applies an allocated reward to the player's account."""

    @abstractmethod
    async def claim(self, play_id: str, item: Item) -> ClaimResult:
        """Claim the reward for a play. success=False is recoverable."""

    async def close(self) -> None:
        """Release any held resources."""
