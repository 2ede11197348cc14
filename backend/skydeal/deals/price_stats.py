"""Price statistics over a route's trailing price history."""
from __future__ import annotations

import enum
import statistics
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

# Seasonal trend needs at least this many observations
MIN_TREND_OBSERVATIONS = 30
TREND_THRESHOLD_PCT = 10.0
HIGH_VOLATILITY_RATIO = 0.20
MEDIUM_VOLATILITY_RATIO = 0.10


class Volatility(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    unknown = "unknown"


class SeasonalTrend(str, enum.Enum):
    increasing = "increasing"
    decreasing = "decreasing"
    stable = "stable"
    insufficient_data = "insufficient_data"


class PricePoint(Protocol):
    """Anything with a price and an observation time (ORM row or dataclass)."""

    price: float
    observed_at: datetime


@dataclass(frozen=True)
class PriceStatistics:
    average_price: float
    median_price: float
    min_price: float
    max_price: float
    standard_deviation: float
    volatility: Volatility
    seasonal_trend: SeasonalTrend

    @property
    def has_history(self) -> bool:
        return self.average_price != 0

    @classmethod
    def empty(cls) -> "PriceStatistics":
        """Neutral value for a route with no history; cannot be evaluated."""
        return cls(
            average_price=0.0,
            median_price=0.0,
            min_price=0.0,
            max_price=0.0,
            standard_deviation=0.0,
            volatility=Volatility.unknown,
            seasonal_trend=SeasonalTrend.insufficient_data,
        )


def classify_volatility(average: float, standard_deviation: float) -> Volatility:
    """Bucket the coefficient of variation."""
    if average == 0:
        return Volatility.unknown
    ratio = standard_deviation / average
    if ratio > HIGH_VOLATILITY_RATIO:
        return Volatility.high
    if ratio > MEDIUM_VOLATILITY_RATIO:
        return Volatility.medium
    return Volatility.low


def detect_seasonal_trend(history: Sequence[PricePoint]) -> SeasonalTrend:
    """
    Compare the mean price of the first and last calendar month in *history*.

    Months are keyed by (year, month) so they sort chronologically across
    year boundaries.
    """
    if len(history) < MIN_TREND_OBSERVATIONS:
        return SeasonalTrend.insufficient_data

    prices_by_month: dict[tuple[int, int], list[float]] = defaultdict(list)
    for record in history:
        key = (record.observed_at.year, record.observed_at.month)
        prices_by_month[key].append(record.price)

    if len(prices_by_month) < 2:
        return SeasonalTrend.insufficient_data

    months = sorted(prices_by_month)
    first = statistics.fmean(prices_by_month[months[0]])
    last = statistics.fmean(prices_by_month[months[-1]])
    if first == 0:
        return SeasonalTrend.insufficient_data

    percent_change = (last - first) / first * 100
    if percent_change > TREND_THRESHOLD_PCT:
        return SeasonalTrend.increasing
    if percent_change < -TREND_THRESHOLD_PCT:
        return SeasonalTrend.decreasing
    return SeasonalTrend.stable


def calculate_price_statistics(history: Sequence[PricePoint]) -> PriceStatistics:
    """Derive baseline statistics from a route's price history."""
    if not history:
        return PriceStatistics.empty()

    prices = [record.price for record in history]
    average = statistics.fmean(prices)
    # Population standard deviation (divide by N)
    std_dev = statistics.pstdev(prices, mu=average)

    return PriceStatistics(
        average_price=average,
        median_price=statistics.median(prices),
        min_price=min(prices),
        max_price=max(prices),
        standard_deviation=std_dev,
        volatility=classify_volatility(average, std_dev),
        seasonal_trend=detect_seasonal_trend(history),
    )
