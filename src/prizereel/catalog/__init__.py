"""Catalog items and play result models."""

from .models import Item, Rarity, RewardType, PlayResult, ClaimResult
from .catalog import Catalog, load_catalog, DEFAULT_CATALOG_PATH

__all__ = [
    "Item",
    "Rarity",
    "RewardType",
    "PlayResult",
    "ClaimResult",
    "Catalog",
    "load_catalog",
    "DEFAULT_CATALOG_PATH",
]
