"""Presentation of urgency tiers. The classifier returns tiers; only this module knows colors."""

from dataclasses import dataclass

from capture_board.urgency import UrgencyTier


@dataclass(frozen=True)
class TierStyle:
    background: str
    font_weight: int


TIER_STYLES: dict[UrgencyTier, TierStyle] = {
    UrgencyTier.OVERDUE: TierStyle("#991b1b", 600),  # dark red
    UrgencyTier.URGENT: TierStyle("#ef4444", 600),  # red
    UrgencyTier.SOON: TierStyle("#22c55e", 400),  # green
    UrgencyTier.LATER: TierStyle("#eab308", 400),  # yellow
}


def style_for(tier: UrgencyTier) -> TierStyle:
    return TIER_STYLES[tier]
