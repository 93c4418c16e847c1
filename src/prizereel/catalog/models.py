"""Prize and play data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Rarity(Enum):
    """Rarity tier, affects presentation and usually the weight."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class RewardType(Enum):
    """Reward kind, decides how a claim is applied."""
    LOYALTY_POINTS = "loyalty_points"
    DISCOUNT_PERCENT = "discount_percent"
    DISCOUNT_FIXED = "discount_fixed"
    FREE_PRODUCT = "free_product"
    FREE_ONESHOT = "free_oneshot"
    VST_VOUCHER = "vst_voucher"


COUPON_REWARDS = (RewardType.DISCOUNT_PERCENT, RewardType.DISCOUNT_FIXED, RewardType.VST_VOUCHER)
PRODUCT_REWARDS = (RewardType.FREE_PRODUCT, RewardType.FREE_ONESHOT)


@dataclass(frozen=True)
class Item:
    """An entry in the reel catalog.

    Only id and weight matter to the reel engine; the rest is display and
    reward metadata passed through to collaborators.
    """

    id: str
    weight: float = 1.0
    name: str = ""
    icon: str = ""
    rarity: Rarity = Rarity.COMMON
    reward_type: RewardType = RewardType.LOYALTY_POINTS
    value: int | float | str = 0
    product_slug: Optional[str] = None
    msrp_cents: Optional[int] = None
    color: Optional[str] = None
    image_file_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Item id must be non-empty")
        if self.weight < 0:
            raise ValueError(f"Item {self.id!r} has negative weight {self.weight}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        """Build an item from a fixture record (camelCase keys accepted)."""
        return cls(
            id=str(data["id"]),
            weight=float(data.get("weight", 0) or 0),
            name=data.get("name", ""),
            icon=data.get("icon", ""),
            rarity=Rarity(data.get("rarity", "common")),
            reward_type=RewardType(data.get("rewardType", data.get("reward_type", "loyalty_points"))),
            value=data.get("value", 0),
            product_slug=data.get("productSlug", data.get("product_slug")),
            msrp_cents=data.get("msrpCents", data.get("msrp_cents")),
            color=data.get("color"),
            image_file_name=data.get("imageFileName", data.get("image_file_name")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (camelCase, as the reward backend expects)."""
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "rarity": self.rarity.value,
            "weight": self.weight,
            "rewardType": self.reward_type.value,
            "value": self.value,
            "productSlug": self.product_slug,
            "msrpCents": self.msrp_cents,
            "color": self.color,
            "imageFileName": self.image_file_name,
        }


@dataclass
class PlayResult:
    """Allocator response: which item this play is worth."""
    play_id: str
    item: Item
    latency_ms: int = 0


@dataclass
class ClaimResult:
    """Claim response; success=False is a recoverable failure."""
    play_id: str
    item_id: str
    success: bool
    coupon_code: Optional[str] = None
    points_added: Optional[int] = None
    granted_product_slug: Optional[str] = None
    error: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)
