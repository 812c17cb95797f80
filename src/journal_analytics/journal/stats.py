"""Guarded numeric helpers shared by the analysers.

Every helper returns a documented sentinel instead of raising on
empty input or a zero denominator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def root_mean_square(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return math.sqrt(float(np.mean(np.square(values))))


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator == 0:
        return default
    return numerator / denominator


def clip(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def profit_factor(avg_win: float, avg_loss: float) -> float:
    """``avg_win / avg_loss``; ``inf`` when only wins exist, 1.0 when neither."""
    if avg_loss != 0:
        return avg_win / avg_loss
    return math.inf if avg_win > 0 else 1.0


def coefficient_consistency(pnls: Sequence[float]) -> float:
    """100 minus the coefficient of variation (in %), floored at 0.

    Needs at least two values (else 0).  A zero mean scores 100 when
    every value is identical, otherwise 0.
    """
    if len(pnls) < 2:
        return 0.0
    avg = mean(pnls)
    sd = pstdev(pnls)
    if avg == 0:
        return 100.0 if sd == 0 else 0.0
    cv = sd / abs(avg) * 100
    return max(0.0, 100.0 - cv)


@dataclass
class PayoffStats:
    """Win/loss split of a P&L series classified by sign."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    total_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0  # Absolute value

    @property
    def win_rate(self) -> float:
        """Winning fraction in [0, 1]."""
        return safe_div(self.wins, self.trades)

    @property
    def avg_pnl(self) -> float:
        return safe_div(self.total_pnl, self.trades)

    @property
    def profit_factor(self) -> float:
        return profit_factor(self.avg_win, self.avg_loss)

    @property
    def risk_reward_ratio(self) -> float:
        return safe_div(self.avg_win, self.avg_loss, default=1.0)

    @property
    def expectancy(self) -> float:
        p = self.win_rate
        return p * self.avg_win - (1 - p) * self.avg_loss


def payoff_stats(pnls: Iterable[float]) -> PayoffStats:
    """Split a P&L series into wins (>0), losses (<0) and breakevens."""
    values = list(pnls)
    win_values = [p for p in values if p > 0]
    loss_values = [abs(p) for p in values if p < 0]
    return PayoffStats(
        trades=len(values),
        wins=len(win_values),
        losses=len(loss_values),
        breakeven=len(values) - len(win_values) - len(loss_values),
        total_pnl=float(sum(values)),
        avg_win=mean(win_values),
        avg_loss=mean(loss_values),
    )
