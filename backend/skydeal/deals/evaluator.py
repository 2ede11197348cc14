"""Turn a current price and route statistics into a deal decision."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from skydeal.db.models.deal import DealQuality
from skydeal.deals.price_stats import PriceStatistics, SeasonalTrend, Volatility

# Minimum discount (percent) for each tier, best tier first
QUALITY_THRESHOLDS: tuple[tuple[int, DealQuality], ...] = (
    (40, DealQuality.amazing),
    (30, DealQuality.great),
    (20, DealQuality.good),
)
FEATURED_GREAT_MIN_DISCOUNT = 35

_DOWNGRADE = {
    DealQuality.amazing: DealQuality.great,
    DealQuality.great: DealQuality.good,
    DealQuality.good: DealQuality.good,
}


@dataclass(frozen=True)
class DealEvaluation:
    is_deal: bool
    discount_percentage: int | None = None
    deal_quality: DealQuality | None = None
    compared_to_average: float | None = None
    compared_to_median: float | None = None
    volatility: Volatility | None = None
    seasonal_trend: SeasonalTrend | None = None
    featured: bool = False

    def to_dict(self) -> dict:
        if not self.is_deal:
            return {"is_deal": False}
        return asdict(self)


NOT_A_DEAL = DealEvaluation(is_deal=False)


def discount_percentage(current_price: float, average_price: float) -> int:
    """Whole-percent discount against the average; negative when above it."""
    raw = (average_price - current_price) / average_price * 100
    # Halves round up, so 19.5 counts as 20
    return math.floor(raw + 0.5)


def quality_for_discount(discount: int) -> DealQuality | None:
    for threshold, quality in QUALITY_THRESHOLDS:
        if discount >= threshold:
            return quality
    return None


def downgrade(quality: DealQuality) -> DealQuality:
    """One tier down, never below good."""
    return _DOWNGRADE[quality]


def is_featured(quality: DealQuality, discount: int) -> bool:
    return quality == DealQuality.amazing or (
        quality == DealQuality.great and discount >= FEATURED_GREAT_MIN_DISCOUNT
    )


def evaluate_deal(current_price: float, stats: PriceStatistics) -> DealEvaluation:
    """
    Decide whether *current_price* is a deal against *stats*.

    Highly volatile routes and routes whose prices are trending down are each
    downgraded one tier, since a low price there is less surprising. Both
    penalties can apply; the result never drops below "good" once the
    discount threshold is met.
    """
    if stats.average_price == 0:
        return NOT_A_DEAL

    discount = discount_percentage(current_price, stats.average_price)
    quality = quality_for_discount(discount)
    if quality is None:
        return NOT_A_DEAL

    if stats.volatility == Volatility.high:
        quality = downgrade(quality)
    if stats.seasonal_trend == SeasonalTrend.decreasing:
        quality = downgrade(quality)

    return DealEvaluation(
        is_deal=True,
        discount_percentage=discount,
        deal_quality=quality,
        compared_to_average=stats.average_price,
        compared_to_median=stats.median_price,
        volatility=stats.volatility,
        seasonal_trend=stats.seasonal_trend,
        featured=is_featured(quality, discount),
    )
