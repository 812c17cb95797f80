"""Mindset / performance correlation.

Merges each trade's psychology factors and good-habit tags and scores
every tag by the win rate and P&L of the trades that carry it.  Tags
are split into helpful and harmful ones through an injected
``HabitCatalog``; tags the catalog does not know count as harmful.

Usage::

    analyser = PsychologyAnalyser(HabitCatalog.default())
    result = analyser.analyse(trades)
    print(result.recommendation)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.enums import HabitType
from ..core.models import HabitCatalog, TradeRecord
from .decision_table import DecisionTable, Rule
from .stats import safe_div

logger = logging.getLogger(__name__)

START_TAGGING_MESSAGE = (
    "Start tagging psychology factors on your trades to discover correlations "
    "between mindset and performance."
)


@dataclass
class PsychFactorStat:
    """Outcome statistics of the trades carrying one tag.

    ``win_rate`` is a fraction; ``impact`` is the gap to the overall
    win rate in percentage points.
    """

    id: str
    label: str
    type: HabitType
    trade_count: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0
    total_pnl: float = 0.0
    impact: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type.value,
            "trade_count": self.trade_count,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "avg_pnl": self.avg_pnl,
            "total_pnl": self.total_pnl,
            "impact": self.impact,
        }


@dataclass
class PsychologyCorrelationResult:
    factors: list[PsychFactorStat] = field(default_factory=list)
    top_positive_factors: list[PsychFactorStat] = field(default_factory=list)
    top_negative_factors: list[PsychFactorStat] = field(default_factory=list)
    trades_with_factors: int = 0
    trades_without_factors: int = 0
    overall_with_factors_win_rate: float = 0.0
    overall_without_factors_win_rate: float = 0.0
    recommendation: str = START_TAGGING_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "factors": [f.to_dict() for f in self.factors],
            "top_positive_factors": [f.to_dict() for f in self.top_positive_factors],
            "top_negative_factors": [f.to_dict() for f in self.top_negative_factors],
            "trades_with_factors": self.trades_with_factors,
            "trades_without_factors": self.trades_without_factors,
            "overall_with_factors_win_rate": self.overall_with_factors_win_rate,
            "overall_without_factors_win_rate": self.overall_without_factors_win_rate,
            "recommendation": self.recommendation,
        }


@dataclass
class _Tally:
    wins: int = 0
    losses: int = 0
    pnls: list[float] = field(default_factory=list)


def _build_recommendation_table(min_tagged_trades: int) -> DecisionTable[PsychologyCorrelationResult]:
    return DecisionTable([
        Rule(
            "too_few_tagged",
            lambda r: r.trades_with_factors < min_tagged_trades,
            lambda r: (
                f"Only {r.trades_with_factors} trades have psychology factors tagged. "
                f"Tag more trades for reliable mindset-performance correlations."
            ),
        ),
        Rule(
            "best_and_worst",
            lambda r: bool(r.top_positive_factors and r.top_negative_factors),
            lambda r: (
                f'"{r.top_positive_factors[0].label}" correlates with '
                f"{r.top_positive_factors[0].win_rate * 100:.0f}% win rate, while "
                f'"{r.top_negative_factors[0].label}" drops to '
                f"{r.top_negative_factors[0].win_rate * 100:.0f}%. Prioritize positive "
                f"mental states before entering trades."
            ),
        ),
        Rule(
            "best_only",
            lambda r: bool(r.top_positive_factors),
            lambda r: (
                f'When you\'re "{r.top_positive_factors[0].label}", your win rate is '
                f"{r.top_positive_factors[0].win_rate * 100:.0f}%. Maintain these "
                f"conditions for best results."
            ),
        ),
        Rule(
            "worst_only",
            lambda r: bool(r.top_negative_factors),
            lambda r: (
                f'When you\'re "{r.top_negative_factors[0].label}", your win rate drops '
                f"to {r.top_negative_factors[0].win_rate * 100:.0f}%. Step away from the "
                f"screen when you notice it."
            ),
        ),
        Rule(
            "fallback",
            lambda r: True,
            "Continue tagging psychology factors to build a reliable dataset for "
            "mindset analysis.",
        ),
    ])


class PsychologyAnalyser:
    """Correlate psychology tags with trade outcomes.

    Parameters
    ----------
    catalog : HabitCatalog
        Good/bad habit reference used for labels and classification.
    top_n : int
        Size of the positive and negative factor lists.  Default 5.
    min_tagged_trades : int
        Tagged-trade count below which only a "tag more" message is
        produced.  Default 5.
    """

    def __init__(
        self,
        catalog: HabitCatalog,
        *,
        top_n: int = 5,
        min_tagged_trades: int = 5,
    ) -> None:
        self._catalog = catalog
        self._top_n = top_n
        self._recommendations = _build_recommendation_table(min_tagged_trades)

    def analyse(self, trades: Sequence[TradeRecord]) -> PsychologyCorrelationResult:
        if not trades:
            return PsychologyCorrelationResult()

        tallies: dict[str, _Tally] = {}
        with_factors = without_factors = 0
        wins_with = wins_without = 0

        for trade in trades:
            tags = trade.psychology_tags
            if tags:
                with_factors += 1
                wins_with += trade.is_win
            else:
                without_factors += 1
                wins_without += trade.is_win

            for tag in tags:
                tally = tallies.setdefault(tag, _Tally())
                tally.pnls.append(trade.pnl)
                # Break-even counts against the tag
                if trade.is_win:
                    tally.wins += 1
                else:
                    tally.losses += 1

        baseline = sum(t.is_win for t in trades) / len(trades)
        factors = sorted(
            (self._factor_stat(tag, tally, baseline) for tag, tally in tallies.items()),
            key=lambda f: -f.trade_count,
        )

        positive = sorted(
            (f for f in factors if f.type is HabitType.GOOD),
            key=lambda f: (-f.win_rate, -f.total_pnl),
        )[: self._top_n]
        negative = sorted(
            (f for f in factors if f.type is HabitType.BAD),
            key=lambda f: (f.win_rate, f.total_pnl),
        )[: self._top_n]

        result = PsychologyCorrelationResult(
            factors=factors,
            top_positive_factors=positive,
            top_negative_factors=negative,
            trades_with_factors=with_factors,
            trades_without_factors=without_factors,
            overall_with_factors_win_rate=safe_div(wins_with, with_factors),
            overall_without_factors_win_rate=safe_div(wins_without, without_factors),
        )
        result.recommendation = self._recommendations.first(result)

        logger.debug(
            "Psychology analysis over %d trades: %d tags, %d tagged trades",
            len(trades), len(factors), with_factors,
        )
        return result

    def _factor_stat(self, tag: str, tally: _Tally, baseline: float) -> PsychFactorStat:
        count = tally.wins + tally.losses
        total = float(sum(tally.pnls))
        win_rate = safe_div(tally.wins, count)
        return PsychFactorStat(
            id=tag,
            label=self._catalog.label(tag),
            type=self._catalog.type_of(tag),
            trade_count=count,
            wins=tally.wins,
            losses=tally.losses,
            win_rate=win_rate,
            avg_pnl=safe_div(total, count),
            total_pnl=total,
            impact=(win_rate - baseline) * 100,
        )
