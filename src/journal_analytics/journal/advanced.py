"""Advanced analytics: dispersion ratios, streaks and time buckets.

Computes risk-adjusted ratios (Sharpe, Sortino, Calmar), a
consistency index, the confluence score, win/loss streaks, average
holding time of winners vs losers, and average P&L by entry hour and
by calendar quarter.

All sequence-dependent figures (max drawdown, streaks) walk the trade
list in the order given.  Sort beforehand if chronological semantics
are wanted; ``JournalAnalytics`` does so by default.

Usage::

    analyser = AdvancedAnalyser(risk_free_rate=0.02, periods_per_year=252)
    result = analyser.analyse(trades)
    print(result.sharpe_ratio, result.max_consecutive_losses)
    print(generate_insights(result))
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.models import TradeRecord
from .decision_table import DecisionTable, Rule
from .stats import mean, pstdev, root_mean_square, safe_div

logger = logging.getLogger(__name__)

QUARTERS = ("Q1", "Q2", "Q3", "Q4")


@dataclass
class AdvancedAnalyticsResult:
    """Derived statistics over one trade list."""

    confluence_score: float = 0.0
    consistency_index: float = 0.0
    risk_adjusted_return: float = 0.0
    sharpe_ratio: float = 0.0
    calmar_ratio: float = 0.0
    sortino: float = 0.0
    max_drawdown: float = 0.0  # Currency, not percent
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    average_win_duration: float = 0.0  # Minutes
    average_loss_duration: float = 0.0
    profitability_by_time_of_day: dict[str, float] = field(default_factory=dict)
    seasonal_performance: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "confluence_score": self.confluence_score,
            "consistency_index": self.consistency_index,
            "risk_adjusted_return": self.risk_adjusted_return,
            "sharpe_ratio": self.sharpe_ratio,
            "calmar_ratio": self.calmar_ratio,
            "sortino": self.sortino,
            "max_drawdown": self.max_drawdown,
            "max_consecutive_wins": self.max_consecutive_wins,
            "max_consecutive_losses": self.max_consecutive_losses,
            "average_win_duration": self.average_win_duration,
            "average_loss_duration": self.average_loss_duration,
            "profitability_by_time_of_day": dict(self.profitability_by_time_of_day),
            "seasonal_performance": dict(self.seasonal_performance),
        }


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def confluence_score(trades: Sequence[TradeRecord]) -> float:
    """Mean number of concept tags per trade."""
    if not trades:
        return 0.0
    return sum(t.concept_count for t in trades) / len(trades)


def consistency_index(returns: Sequence[float]) -> float:
    """100 minus the coefficient of variation, floored at 0.

    Zero when fewer than two returns, when returns do not vary, or
    when the mean return is exactly zero.
    """
    if len(returns) < 2:
        return 0.0
    sd = pstdev(returns)
    avg = mean(returns)
    if sd <= 0 or avg == 0:
        return 0.0
    return max(0.0, 100.0 - sd / abs(avg) * 100)


def max_drawdown(returns: Sequence[float]) -> float:
    """Largest peak-to-trough fall of the running P&L, in currency."""
    running = 0.0
    peak = 0.0
    worst = 0.0
    for r in returns:
        running += r
        if running > peak:
            peak = running
        worst = max(worst, peak - running)
    return worst


def consecutive_streaks(returns: Sequence[float]) -> tuple[int, int]:
    """(longest winning run, longest losing run); a flat trade resets both."""
    best_win = best_loss = 0
    win_run = loss_run = 0
    for r in returns:
        if r > 0:
            win_run += 1
            loss_run = 0
            best_win = max(best_win, win_run)
        elif r < 0:
            loss_run += 1
            win_run = 0
            best_loss = max(best_loss, loss_run)
        else:
            win_run = loss_run = 0
    return best_win, best_loss


def parse_hour(raw: str | None) -> int | None:
    """Hour of day from ``"HH:MM[:SS]"`` or an ISO timestamp."""
    if not raw:
        return None
    text = raw.strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    else:
        # First clock-like token; skips a leading date and a trailing offset
        clock_parts = [part for part in text.split() if ":" in part]
        if clock_parts:
            text = clock_parts[0]
    head = text.split(":", 1)[0]
    try:
        hour = int(head)
    except ValueError:
        return None
    if 0 <= hour <= 23:
        return hour
    return None


def profitability_by_time_of_day(trades: Sequence[TradeRecord]) -> dict[str, float]:
    """Average P&L keyed by two-digit entry hour, in hour order."""
    buckets: dict[str, list[float]] = defaultdict(list)
    for trade in trades:
        hour = parse_hour(trade.trade_start_time)
        if hour is None:
            continue
        buckets[f"{hour:02d}"].append(trade.pnl)
    return {hour: mean(pnls) for hour, pnls in sorted(buckets.items())}


def quarter_of(trade: TradeRecord) -> str:
    return QUARTERS[(trade.date.month - 1) // 3]


def seasonal_performance(trades: Sequence[TradeRecord]) -> dict[str, float]:
    """Average P&L per calendar quarter; every quarter is present."""
    buckets: dict[str, list[float]] = {q: [] for q in QUARTERS}
    for trade in trades:
        buckets[quarter_of(trade)].append(trade.pnl)
    return {q: mean(pnls) for q, pnls in buckets.items()}


# ---------------------------------------------------------------------------
# Analyser
# ---------------------------------------------------------------------------

class AdvancedAnalyser:
    """Dispersion, streak and bucket analytics.

    Parameters
    ----------
    risk_free_rate : float
        Annual risk-free rate used by the Sharpe ratio.  Default 0.02.
    periods_per_year : int
        Periods used to de-annualise the risk-free rate and to
        annualise the Calmar numerator.  Default 252.
    """

    def __init__(
        self,
        *,
        risk_free_rate: float = 0.02,
        periods_per_year: int = 252,
    ) -> None:
        self._periods = max(1, periods_per_year)
        self._rf = risk_free_rate / self._periods

    def analyse(self, trades: Sequence[TradeRecord]) -> AdvancedAnalyticsResult:
        if not trades:
            return AdvancedAnalyticsResult(seasonal_performance=seasonal_performance([]))

        returns = [t.pnl for t in trades]
        avg = mean(returns)
        sd = pstdev(returns)

        drawdown = max_drawdown(returns)
        downside = root_mean_square([r for r in returns if r < 0])
        best_win, best_loss = consecutive_streaks(returns)

        result = AdvancedAnalyticsResult(
            confluence_score=confluence_score(trades),
            consistency_index=consistency_index(returns),
            risk_adjusted_return=safe_div(avg, sd),
            sharpe_ratio=safe_div(avg - self._rf, sd),
            calmar_ratio=safe_div(avg * self._periods, drawdown),
            sortino=safe_div(avg, downside),
            max_drawdown=drawdown,
            max_consecutive_wins=best_win,
            max_consecutive_losses=best_loss,
            average_win_duration=mean([t.duration_minutes for t in trades if t.pnl > 0]),
            average_loss_duration=mean([t.duration_minutes for t in trades if t.pnl < 0]),
            profitability_by_time_of_day=profitability_by_time_of_day(trades),
            seasonal_performance=seasonal_performance(trades),
        )
        logger.debug(
            "Advanced analytics over %d trades: sharpe=%.4f max_dd=%.2f",
            len(trades), result.sharpe_ratio, result.max_drawdown,
        )
        return result


# ---------------------------------------------------------------------------
# Coaching insights
# ---------------------------------------------------------------------------

_INSIGHT_RULES: DecisionTable[AdvancedAnalyticsResult] = DecisionTable([
    Rule(
        "high_confluence",
        lambda a: a.confluence_score > 3,
        "Excellent strategy confluence! You're effectively combining multiple trading concepts.",
    ),
    Rule(
        "low_confluence",
        lambda a: a.confluence_score < 1.5,
        "Consider using more confluent factors in your trade setups for better accuracy.",
    ),
    Rule(
        "high_consistency",
        lambda a: a.consistency_index > 70,
        "Your trading shows excellent consistency. Keep up the disciplined approach!",
    ),
    Rule(
        "low_consistency",
        lambda a: a.consistency_index < 40,
        "Focus on improving consistency by standardizing your trade management.",
    ),
    Rule(
        "strong_sharpe",
        lambda a: a.sharpe_ratio > 1.5,
        "Outstanding risk-adjusted returns! Your risk management is working well.",
    ),
    Rule(
        "weak_sharpe",
        lambda a: a.sharpe_ratio < 0.5,
        "Consider tightening your risk management to improve risk-adjusted returns.",
    ),
    Rule(
        "long_losing_streak",
        lambda a: a.max_consecutive_losses > 5,
        "You've experienced long losing streaks. Consider reviewing your strategy during drawdowns.",
    ),
    Rule(
        "long_winning_streak",
        lambda a: a.max_consecutive_wins > 8,
        "Great winning streaks! Be careful not to become overconfident during hot streaks.",
    ),
    Rule(
        "cutting_winners",
        lambda a: a.average_win_duration < a.average_loss_duration,
        "You're cutting winners short and letting losers run. Consider adjusting your exit strategy.",
    ),
])


def generate_insights(result: AdvancedAnalyticsResult) -> list[str]:
    """Every coaching insight whose condition holds, in table order."""
    return _INSIGHT_RULES.all(result)
