"""Per-setup performance breakdown.

Groups trades by ``setup_name`` and scores each group: win/loss split,
payoff averages, profit factor, a suggested reward-to-risk target and
a consistency score.  The best setup becomes the trader's "personal
edge".

Usage::

    analyser = SetupAnalyser(top_n=3)
    result = analyser.analyse(trades)
    if result.personal_edge:
        print(result.personal_edge.setup_name)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.models import TradeRecord
from .stats import coefficient_consistency, payoff_stats

logger = logging.getLogger(__name__)

UNNAMED_SETUP = "Unnamed Setup"


@dataclass
class SetupPerformance:
    """Statistics for one setup.  ``win_rate`` is a fraction."""

    setup_name: str
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0
    total_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 1.0
    risk_reward_ratio: float = 1.0
    optimal_rrr: float = 2.0
    consistency: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "setup_name": self.setup_name,
            "total_trades": self.total_trades,
            "wins": self.wins,
            "losses": self.losses,
            "breakeven": self.breakeven,
            "win_rate": self.win_rate,
            "avg_pnl": self.avg_pnl,
            "total_pnl": self.total_pnl,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "profit_factor": self.profit_factor,
            "risk_reward_ratio": self.risk_reward_ratio,
            "optimal_rrr": self.optimal_rrr,
            "consistency": self.consistency,
        }


@dataclass
class SetupAnalysisResult:
    all_setups: list[SetupPerformance] = field(default_factory=list)
    top_setups: list[SetupPerformance] = field(default_factory=list)
    bottom_setups: list[SetupPerformance] = field(default_factory=list)
    personal_edge: SetupPerformance | None = None
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "all_setups": [s.to_dict() for s in self.all_setups],
            "top_setups": [s.to_dict() for s in self.top_setups],
            "bottom_setups": [s.to_dict() for s in self.bottom_setups],
            "personal_edge": self.personal_edge.to_dict() if self.personal_edge else None,
            "recommendations": list(self.recommendations),
        }


def optimal_rrr(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """Reward-to-risk target implied by the payoff profile, in [1, 10].

    Falls back to 2 when there are no losses or no wins.
    """
    if avg_loss == 0 or win_rate == 0:
        return 2.0
    if win_rate >= 1:
        return 10.0
    ratio = (win_rate * avg_win) / ((1 - win_rate) * avg_loss)
    return max(1.0, min(10.0, round(ratio * 10) / 10))


def setup_performance(name: str, trades: Sequence[TradeRecord]) -> SetupPerformance:
    """Score one group of trades; wins and losses follow the P&L sign."""
    pnls = [t.pnl for t in trades]
    payoff = payoff_stats(pnls)
    return SetupPerformance(
        setup_name=name,
        total_trades=payoff.trades,
        wins=payoff.wins,
        losses=payoff.losses,
        breakeven=payoff.breakeven,
        win_rate=payoff.win_rate,
        avg_pnl=payoff.avg_pnl,
        total_pnl=payoff.total_pnl,
        avg_win=payoff.avg_win,
        avg_loss=payoff.avg_loss,
        profit_factor=payoff.profit_factor,
        risk_reward_ratio=payoff.risk_reward_ratio,
        optimal_rrr=optimal_rrr(payoff.win_rate, payoff.avg_win, payoff.avg_loss),
        consistency=coefficient_consistency(pnls),
    )


class SetupAnalyser:
    """Rank setups and pick out the personal edge.

    Parameters
    ----------
    top_n : int
        Size of the top and bottom lists.  Default 3.
    min_trades : int
        Setups with fewer trades are flagged as needing more data; only
        setups at or above it can be flagged as weak.  Default 3.
    weak_win_rate : float
        Win-rate fraction below which a setup is flagged.  Default 0.4.
    """

    def __init__(
        self,
        *,
        top_n: int = 3,
        min_trades: int = 3,
        weak_win_rate: float = 0.4,
    ) -> None:
        self._top_n = top_n
        self._min_trades = min_trades
        self._weak_win_rate = weak_win_rate

    def analyse(self, trades: Sequence[TradeRecord]) -> SetupAnalysisResult:
        if not trades:
            return SetupAnalysisResult()

        # dict keeps first-appearance order of setup names
        groups: dict[str, list[TradeRecord]] = defaultdict(list)
        for trade in trades:
            groups[trade.setup_name or UNNAMED_SETUP].append(trade)

        all_setups = [setup_performance(name, group) for name, group in groups.items()]

        top = sorted(all_setups, key=lambda s: (-s.win_rate, -s.profit_factor))[: self._top_n]
        bottom = sorted(all_setups, key=lambda s: (s.win_rate, s.profit_factor))[: self._top_n]
        edge = top[0] if top else None

        logger.debug(
            "Setup analysis over %d trades: %d setups, edge=%s",
            len(trades), len(all_setups), edge.setup_name if edge else None,
        )

        return SetupAnalysisResult(
            all_setups=all_setups,
            top_setups=top,
            bottom_setups=bottom,
            personal_edge=edge,
            recommendations=self._recommendations(all_setups, edge),
        )

    def _recommendations(
        self, setups: list[SetupPerformance], edge: SetupPerformance | None
    ) -> list[str]:
        out: list[str] = []

        if edge is not None:
            out.append(
                f'Your strongest setup is "{edge.setup_name}" with '
                f"{edge.win_rate * 100:.1f}% win rate and "
                f"{edge.profit_factor:.2f}x profit factor."
            )
            out.append(
                f"Focus on optimal risk-reward of 1:{edge.optimal_rrr:.1f} "
                f'for "{edge.setup_name}" trades.'
            )

        weak = [
            s for s in setups
            if s.total_trades >= self._min_trades and s.win_rate < self._weak_win_rate
        ]
        if weak:
            listed = ", ".join(f'"{s.setup_name}" ({s.win_rate * 100:.0f}%)' for s in weak)
            out.append(f"Consider avoiding or refining: {listed}")

        thin = [s for s in setups if s.total_trades < self._min_trades]
        if thin:
            listed = ", ".join(f'"{s.setup_name}" ({s.total_trades} trades)' for s in thin)
            out.append(f"Collect more data on: {listed}")

        return out
