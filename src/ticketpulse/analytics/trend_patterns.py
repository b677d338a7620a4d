from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Sequence, Tuple

import numpy as np

from ..standards.schemas import TrendPoint


Momentum = Literal["accelerating", "decelerating", "steady"]

VOLATILE_RATIO = 0.3
STABLE_RATIO = 0.15
MOMENTUM_WINDOW = 3
MOMENTUM_THRESHOLD = 0.3


@dataclass(frozen=True)
class TrendPattern:
    is_increasing: bool = False
    is_decreasing: bool = False
    is_volatile: bool = False
    is_stable: bool = True
    momentum: Momentum = "steady"
    volatility_ratio: float = 0.0
    deltas: Tuple[int, ...] = field(default_factory=tuple)


def _momentum(deltas: np.ndarray) -> Momentum:
    if len(deltas) < MOMENTUM_WINDOW:
        return "steady"
    recent = np.abs(deltas[-MOMENTUM_WINDOW:]).mean()
    earlier_part = np.abs(deltas[:-MOMENTUM_WINDOW])
    earlier = earlier_part.mean() if earlier_part.size else recent
    if recent > earlier * (1 + MOMENTUM_THRESHOLD):
        return "accelerating"
    if recent < earlier * (1 - MOMENTUM_THRESHOLD):
        return "decelerating"
    return "steady"


def analyze_trend_pattern(points: Sequence[TrendPoint]) -> TrendPattern:
    """Direction, volatility and momentum of an ordered count series.

    - deltas: consecutive differences
    - increasing/decreasing: majority sign of deltas agreeing with the mean delta
    - volatility_ratio: population std of deltas / mean count (0 when the mean is 0)
    - momentum: mean |delta| of the last 3 vs. all earlier deltas, +/-30%

    Fewer than two points give the neutral default (stable, steady).
    """

    if len(points) < 2:
        return TrendPattern()

    counts = np.array([p.count for p in points], dtype=float)
    deltas = np.diff(counts)
    rising = int((deltas > 0).sum())
    falling = int((deltas < 0).sum())
    mean_delta = float(deltas.mean())

    mean_count = float(counts.mean())
    volatility_ratio = float(deltas.std()) / mean_count if mean_count > 0 else 0.0

    return TrendPattern(
        is_increasing=rising > falling and mean_delta > 0,
        is_decreasing=falling > rising and mean_delta < 0,
        is_volatile=volatility_ratio > VOLATILE_RATIO,
        is_stable=volatility_ratio < STABLE_RATIO,
        momentum=_momentum(deltas),
        volatility_ratio=volatility_ratio,
        deltas=tuple(int(d) for d in deltas),
    )
