"""HTTP reward backend.

Talks to the rewards API:
    POST /api/claw/play  -> {playId, prize, serverLatencyMs?}
    POST /api/claw/claim -> {playId, prizeId, success, couponCode?, pointsAdded?, grantedProductSlug?}
"""

from typing import Any, Dict, Optional
import asyncio
import logging

import aiohttp

from prizereel.backend.base import PrizeAllocator, RewardClaimer
from prizereel.catalog.catalog import Catalog
from prizereel.catalog.models import ClaimResult, Item, PlayResult
from prizereel.config.settings import BackendSettings
from prizereel.core.errors import AllocationFailed

logger = logging.getLogger(__name__)

PLAY_PATH = "/api/claw/play"
CLAIM_PATH = "/api/claw/claim"


class HttpRewardBackend(PrizeAllocator, RewardClaimer):
    """Allocator and claimer backed by the rewards API."""

    def __init__(
        self,
        catalog: Catalog,
        api_url: str,
        api_key: str = "",
        play_timeout_s: float = 10.0,
        claim_timeout_s: float = 10.0,
    ):
        """Initialize the backend.

        Args:
            catalog: Catalog used to resolve allocated prize ids
            api_url: Base URL of the rewards API
            api_key: Bearer token, omitted from requests when empty
            play_timeout_s: Total timeout for a play request
            claim_timeout_s: Total timeout for a claim request
        """
        self.catalog = catalog
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._play_timeout = aiohttp.ClientTimeout(total=play_timeout_s)
        self._claim_timeout = aiohttp.ClientTimeout(total=claim_timeout_s)
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, catalog: Catalog, settings: BackendSettings) -> "HttpRewardBackend":
        return cls(
            catalog,
            api_url=settings.api_url,
            api_key=settings.api_key,
            play_timeout_s=settings.allocator_timeout_s,
            claim_timeout_s=settings.claim_timeout_s,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            headers = {"Content-Type": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def play(self) -> PlayResult:
        try:
            session = await self._get_session()
            async with session.post(
                f"{self._api_url}{PLAY_PATH}", json={}, timeout=self._play_timeout
            ) as response:
                status = response.status
                data = await response.json()

        except asyncio.TimeoutError as e:
            logger.error("Timeout allocating prize")
            raise AllocationFailed("TIMEOUT") from e
        except (aiohttp.ContentTypeError, ValueError) as e:
            logger.error(f"Unreadable play response: {e}")
            raise AllocationFailed("BAD_RESPONSE") from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error allocating prize: {e}")
            raise AllocationFailed("NETWORK_ERROR") from e

        if not isinstance(data, dict):
            logger.error(f"Play response is not an object: {type(data).__name__}")
            raise AllocationFailed("BAD_RESPONSE")

        if status != 200:
            error = data.get("error", f"HTTP {status}")
            logger.error(f"Play request rejected: {error}")
            raise AllocationFailed(error)

        try:
            item = self._resolve_item(data["prize"])
            result = PlayResult(
                play_id=str(data["playId"]),
                item=item,
                latency_ms=int(data.get("serverLatencyMs", 0) or 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed play response: {e}")
            raise AllocationFailed("BAD_RESPONSE") from e

        logger.info(f"Allocated {item.id} for {result.play_id}")
        return result

    async def claim(self, play_id: str, item: Item) -> ClaimResult:
        payload = {"playId": play_id, "prizeId": item.id}
        try:
            session = await self._get_session()
            async with session.post(
                f"{self._api_url}{CLAIM_PATH}", json=payload, timeout=self._claim_timeout
            ) as response:
                status = response.status
                data = await response.json()

        except asyncio.TimeoutError:
            logger.error("Timeout claiming reward")
            return ClaimResult(play_id=play_id, item_id=item.id, success=False, error="TIMEOUT")
        except (aiohttp.ContentTypeError, ValueError) as e:
            logger.error(f"Unreadable claim response: {e}")
            return ClaimResult(play_id=play_id, item_id=item.id, success=False, error="BAD_RESPONSE")
        except aiohttp.ClientError as e:
            logger.error(f"Network error claiming reward: {e}")
            return ClaimResult(play_id=play_id, item_id=item.id, success=False, error="NETWORK_ERROR")

        if not isinstance(data, dict):
            logger.error(f"Claim response is not an object: {type(data).__name__}")
            return ClaimResult(play_id=play_id, item_id=item.id, success=False, error="BAD_RESPONSE")

        if status == 200 and data.get("success"):
            logger.info(f"Claimed {item.id} for {play_id}")
            return ClaimResult(
                play_id=play_id,
                item_id=item.id,
                success=True,
                coupon_code=data.get("couponCode"),
                points_added=data.get("pointsAdded"),
                granted_product_slug=data.get("grantedProductSlug"),
                extra=self._extra_fields(data),
            )

        error = data.get("error", f"HTTP {status}")
        logger.error(f"Failed to claim {item.id}: {error}")
        return ClaimResult(play_id=play_id, item_id=item.id, success=False, error=error)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def _resolve_item(self, prize: Dict[str, Any]) -> Item:
        """Prefer the local catalog entry so the reel can find the item."""
        local = self.catalog.get(str(prize["id"]))
        return local if local is not None else Item.from_dict(prize)

    @staticmethod
    def _extra_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        known = {"playId", "prizeId", "success", "couponCode", "pointsAdded", "grantedProductSlug"}
        return {k: v for k, v in data.items() if k not in known}
