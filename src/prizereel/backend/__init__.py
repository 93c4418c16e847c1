"""Prize allocation and reward claim backends."""

from prizereel.backend.base import PrizeAllocator, RewardClaimer
from prizereel.backend.mock import MockRewardBackend, RewardLedger
from prizereel.backend.http import HttpRewardBackend
from prizereel.catalog.catalog import Catalog
from prizereel.config.settings import BackendSettings

__all__ = [
    "PrizeAllocator",
    "RewardClaimer",
    "MockRewardBackend",
    "RewardLedger",
    "HttpRewardBackend",
    "create_backend",
]


def create_backend(catalog: Catalog, settings: BackendSettings, rng=None):
    """Build the backend selected by settings.kind."""
    if settings.kind == "http":
        return HttpRewardBackend.from_settings(catalog, settings)
    return MockRewardBackend.from_settings(catalog, settings, rng=rng)
