"""In-process reward backend with simulated latency.

Draws prizes by catalog weight and applies claimed rewards to an in-memory
ledger, standing in for the production play/claim endpoints.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import asyncio
import logging
import random
import string
import time

from prizereel.backend.base import PrizeAllocator, RewardClaimer
from prizereel.catalog.catalog import Catalog
from prizereel.catalog.models import (
    COUPON_REWARDS,
    PRODUCT_REWARDS,
    ClaimResult,
    Item,
    PlayResult,
    RewardType,
)
from prizereel.config.settings import BackendSettings
from prizereel.core.errors import AllocationFailed, EmptyWeightPool
from prizereel.reel.picker import WeightedPicker

logger = logging.getLogger(__name__)

COUPON_PREFIX = "DRUM-"
COUPON_ALPHABET = string.ascii_uppercase + string.digits
COUPON_LENGTH = 6


@dataclass
class RewardLedger:
    """Player-side record of applied rewards."""

    points_balance: int = 0
    coupons: List[Dict[str, Any]] = field(default_factory=list)
    library: List[Dict[str, Any]] = field(default_factory=list)

    def clear(self) -> None:
        self.points_balance = 0
        self.coupons.clear()
        self.library.clear()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MockRewardBackend(PrizeAllocator, RewardClaimer):
    """Allocator and claimer backed by the local catalog."""

    def __init__(
        self,
        catalog: Catalog,
        rng: Optional[random.Random] = None,
        play_latency_ms: tuple[float, float] = (400.0, 700.0),
        claim_latency_ms: tuple[float, float] = (100.0, 300.0),
    ):
        self.catalog = catalog
        self.ledger = RewardLedger()
        self._rng = rng or random.Random()
        self._picker = WeightedPicker(self._rng)
        self._play_latency_ms = play_latency_ms
        self._claim_latency_ms = claim_latency_ms

    @classmethod
    def from_settings(
        cls,
        catalog: Catalog,
        settings: BackendSettings,
        rng: Optional[random.Random] = None,
    ) -> "MockRewardBackend":
        return cls(
            catalog,
            rng=rng,
            play_latency_ms=(settings.play_latency_min_ms, settings.play_latency_max_ms),
            claim_latency_ms=(settings.claim_latency_min_ms, settings.claim_latency_max_ms),
        )

    async def play(self) -> PlayResult:
        latency = self._rng.uniform(*self._play_latency_ms)
        await asyncio.sleep(latency / 1000)

        try:
            item = self._picker.pick_entry(list(self.catalog))
        except EmptyWeightPool as e:
            raise AllocationFailed(str(e)) from e

        result = PlayResult(play_id=self._new_play_id(), item=item, latency_ms=round(latency))
        logger.info(f"Allocated {item.id} for {result.play_id} ({result.latency_ms}ms)")
        return result

    async def claim(self, play_id: str, item: Item) -> ClaimResult:
        await asyncio.sleep(self._rng.uniform(*self._claim_latency_ms) / 1000)

        result = ClaimResult(play_id=play_id, item_id=item.id, success=True)

        if item.reward_type == RewardType.LOYALTY_POINTS:
            points = item.value if isinstance(item.value, int) else 0
            self.ledger.points_balance += points
            result.points_added = points

        elif item.reward_type in COUPON_REWARDS:
            code = self._new_coupon_code()
            self.ledger.coupons.append({
                "code": code,
                "prizeId": item.id,
                "rewardType": item.reward_type.value,
                "value": item.value,
                "claimedAt": _utc_now(),
            })
            result.coupon_code = code

        elif item.reward_type in PRODUCT_REWARDS and item.product_slug:
            self.ledger.library.append({
                "productSlug": item.product_slug,
                "prizeId": item.id,
                "grantedAt": _utc_now(),
            })
            result.granted_product_slug = item.product_slug

        logger.info(f"Claimed {item.id} for {play_id}")
        return result

    def _new_play_id(self) -> str:
        suffix = "".join(self._rng.choices(string.ascii_lowercase + string.digits, k=6))
        return f"play_{int(time.time() * 1000)}_{suffix}"

    def _new_coupon_code(self) -> str:
        return COUPON_PREFIX + "".join(self._rng.choices(COUPON_ALPHABET, k=COUPON_LENGTH))
