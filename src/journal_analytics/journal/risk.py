"""Risk analysis and Kelly-criterion position sizing.

Derives the payoff profile of a trade history (win rate, average win
and loss, profit factor, expectancy), turns it into a capped
half-Kelly risk-per-trade recommendation with a position-size ladder,
and tracks percentage drawdown of the running P&L.

Sizing policy:

    kelly       = (p * b - (1 - p)) / b      b = avg_win / avg_loss
    safe kelly  = clip(kelly, 0, 0.25)
    half kelly  = safe kelly / 2
    risk %      = clip(half kelly * 100, 0.5, 5)

When any input is zero (no wins, no losses, or no win rate) the
formula is skipped and a fixed 1% recommendation is returned.

Note: ``suggested_position_size = risk_amount / avg_loss * avg_win``
mixes a currency budget with currency averages, so it is a scaled
reward figure rather than a quantity.  It is kept as-is for
compatibility with existing consumers.

Usage::

    calculator = KellyRiskCalculator()
    analysis = calculator.analyse(trades)
    print(analysis.kelly_criterion.recommended_risk_percent)
    print(analysis.recommendations)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.models import TradeRecord
from .decision_table import DecisionTable, Rule
from .stats import clip, mean, payoff_stats, safe_div

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_SIZES: tuple[float, ...] = (1000, 5000, 10000, 25000, 50000, 100000)

INSUFFICIENT_DATA_ADVICE = (
    "Insufficient data for Kelly Criterion calculation. Use 1-2% risk per trade."
)


@dataclass
class PositionSizeGuide:
    """Suggested risk budget for one account size."""

    risk_percent: float
    account_size: float
    risk_amount: float
    suggested_position_size: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_percent": self.risk_percent,
            "account_size": self.account_size,
            "risk_amount": self.risk_amount,
            "suggested_position_size": self.suggested_position_size,
        }


@dataclass
class KellyCriterionResult:
    """Kelly sizing output.  All ``*_percent`` fields are percentages."""

    kelly_percent: float = 0.0  # Raw Kelly, may be negative
    recommended_risk_percent: float = 1.0
    half_kelly_percent: float = 0.5
    safe_kelly_percent: float = 0.0  # Kelly after the cap
    position_size_guide: list[PositionSizeGuide] = field(default_factory=list)
    advice: str = INSUFFICIENT_DATA_ADVICE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kelly_percent": self.kelly_percent,
            "recommended_risk_percent": self.recommended_risk_percent,
            "half_kelly_percent": self.half_kelly_percent,
            "safe_kelly_percent": self.safe_kelly_percent,
            "position_size_guide": [g.to_dict() for g in self.position_size_guide],
            "advice": self.advice,
        }


@dataclass
class DrawdownMetrics:
    """Percentage drawdown of the running P&L (one decimal)."""

    max_drawdown: float = 0.0
    current_drawdown: float = 0.0
    recovery_trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_drawdown": self.max_drawdown,
            "current_drawdown": self.current_drawdown,
            "recovery_trades": self.recovery_trades,
        }


@dataclass
class RiskAnalysis:
    """Payoff profile, sizing recommendation and drawdown state."""

    current_win_rate: float = 0.0  # Fraction in [0, 1]
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 1.0
    current_avg_risk_percent: float = 0.0
    current_avg_risk_reward: float = 1.0
    expectancy: float = 0.0
    kelly_criterion: KellyCriterionResult = field(default_factory=KellyCriterionResult)
    drawdown_metrics: DrawdownMetrics = field(default_factory=DrawdownMetrics)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_win_rate": self.current_win_rate,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "profit_factor": self.profit_factor,
            "current_avg_risk_percent": self.current_avg_risk_percent,
            "current_avg_risk_reward": self.current_avg_risk_reward,
            "expectancy": self.expectancy,
            "kelly_criterion": self.kelly_criterion.to_dict(),
            "drawdown_metrics": self.drawdown_metrics.to_dict(),
            "recommendations": list(self.recommendations),
        }


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

@dataclass
class _KellyContext:
    win_rate: float
    kelly: float  # Raw fraction
    recommended: float  # Percent


@dataclass
class _RiskContext:
    win_rate: float
    profit_factor: float
    drawdown: DrawdownMetrics


def _implied_reward_ratio(c: _KellyContext) -> float:
    return safe_div(c.recommended, 1 - c.win_rate) * c.win_rate


def _build_kelly_advice(conservative_win_rate: float) -> DecisionTable[_KellyContext]:
    return DecisionTable([
        Rule(
            "low_win_rate",
            lambda c: c.win_rate < conservative_win_rate,
            lambda c: (
                f"With a {c.win_rate * 100:.1f}% win rate, use conservative 1% risk "
                f"per trade until consistency improves."
            ),
        ),
        Rule(
            "aggressive_kelly",
            lambda c: c.kelly > 0.5,
            lambda c: (
                f"Your Kelly Criterion is {c.kelly * 100:.1f}%, but use "
                f"{c.recommended:.1f}% (half-Kelly) for safety."
            ),
        ),
        Rule(
            "standard",
            lambda c: True,
            lambda c: (
                f"Risk {c.recommended:.1f}% per trade based on your "
                f"{c.win_rate * 100:.1f}% win rate and "
                f"{_implied_reward_ratio(c):.1f}x risk-reward ratio."
            ),
        ),
    ])


def _build_risk_recommendations(
    *,
    conservative_win_rate: float,
    strong_win_rate: float,
    low_profit_factor: float,
    high_profit_factor: float,
    drawdown_alert_ratio: float,
    long_recovery_trades: int,
) -> DecisionTable[_RiskContext]:
    return DecisionTable([
        Rule(
            "low_win_rate",
            lambda c: c.win_rate < conservative_win_rate,
            f"Your win rate is below {conservative_win_rate * 100:.0f}%. Focus on improving "
            "setup selection before increasing position size.",
        ),
        Rule(
            "high_win_rate",
            lambda c: c.win_rate > strong_win_rate,
            f"Your win rate exceeds {strong_win_rate * 100:.0f}%. You can safely use the "
            "recommended Kelly Criterion position sizing.",
        ),
        Rule(
            "low_profit_factor",
            lambda c: c.profit_factor < low_profit_factor,
            "Your profit factor is low. Consider tightening stop losses or improving "
            "entry accuracy.",
        ),
        Rule(
            "high_profit_factor",
            lambda c: c.profit_factor > high_profit_factor,
            "Exceptional profit factor. Maintain current risk management and avoid "
            "over-leveraging.",
        ),
        Rule(
            "deep_drawdown",
            lambda c: c.drawdown.current_drawdown > c.drawdown.max_drawdown * drawdown_alert_ratio,
            lambda c: (
                f"You're in a significant drawdown ({c.drawdown.current_drawdown:.1f}% vs a "
                f"worst of {c.drawdown.max_drawdown:.1f}%). Consider reducing position "
                f"size temporarily."
            ),
        ),
        Rule(
            "long_recovery",
            lambda c: c.drawdown.recovery_trades > long_recovery_trades,
            lambda c: (
                f"Recovery is taking {c.drawdown.recovery_trades} trades. This is normal, "
                f"maintain discipline and avoid revenge trading."
            ),
        ),
    ])


# ---------------------------------------------------------------------------
# Stand-alone computations
# ---------------------------------------------------------------------------

def calculate_drawdown_metrics(trades: Sequence[TradeRecord]) -> DrawdownMetrics:
    """Walk trades in the order given and track percentage drawdown.

    Drawdown is measured against the running peak, with the peak floored
    at 1 so an early loss from zero is expressed against one unit.
    ``recovery_trades`` counts trades spent in the current (or last)
    drawdown episode; it restarts each time a new episode begins.
    """
    if not trades:
        return DrawdownMetrics()

    running = 0.0
    peak = 0.0
    worst = 0.0
    current = 0.0
    recovery_trades = 0
    in_recovery = False

    for trade in trades:
        running += trade.pnl
        if running > peak:
            peak = running
            in_recovery = False

        drawdown = (peak - running) / max(1.0, peak) * 100
        worst = max(worst, drawdown)
        current = drawdown

        if drawdown > 0 and not in_recovery:
            in_recovery = True
            recovery_trades = 0
        if in_recovery:
            recovery_trades += 1

    return DrawdownMetrics(
        max_drawdown=round(worst, 1),
        current_drawdown=round(current, 1),
        recovery_trades=recovery_trades,
    )


def average_risk_percent(trades: Sequence[TradeRecord]) -> float:
    """Mean stop distance as a percentage of the realised move.

    Trades with no realised move or no stop distance are ignored.
    """
    ratios = []
    for trade in trades:
        risk = abs(trade.entry_price - trade.stop_loss) * trade.size
        reward = abs(trade.exit_price - trade.entry_price) * trade.size
        if reward == 0:
            continue
        ratio = risk / reward * 100
        if ratio > 0:
            ratios.append(ratio)
    return mean(ratios)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class KellyRiskCalculator:
    """Payoff-ratio based position sizing and drawdown tracking.

    Parameters
    ----------
    max_kelly_fraction : float
        Cap applied to the raw Kelly fraction.  Default 0.25.
    min_risk_percent, max_risk_percent : float
        Bounds of the recommended risk per trade.  Default 0.5 / 5.
    account_sizes : sequence of float
        Ladder used for the position-size guide.
    conservative_win_rate : float
        Below this win rate advice switches to a flat 1%.  Default 0.4.
    strong_win_rate : float
        Above this win rate Kelly sizing is endorsed.  Default 0.6.
    low_profit_factor, high_profit_factor : float
        Profit factor alert bands.  Default 1.5 / 3.
    drawdown_alert_ratio : float
        Current drawdown above this share of the worst drawdown raises a
        size-down recommendation.  Default 0.8.
    long_recovery_trades : int
        Recovery length that triggers the revenge-trading warning.
    """

    def __init__(
        self,
        *,
        max_kelly_fraction: float = 0.25,
        min_risk_percent: float = 0.5,
        max_risk_percent: float = 5.0,
        account_sizes: Sequence[float] = DEFAULT_ACCOUNT_SIZES,
        conservative_win_rate: float = 0.4,
        strong_win_rate: float = 0.6,
        low_profit_factor: float = 1.5,
        high_profit_factor: float = 3.0,
        drawdown_alert_ratio: float = 0.8,
        long_recovery_trades: int = 20,
    ) -> None:
        self._max_kelly = max_kelly_fraction
        self._min_risk = min_risk_percent
        self._max_risk = max_risk_percent
        self._account_sizes = tuple(account_sizes)
        self._kelly_advice = _build_kelly_advice(conservative_win_rate)
        self._recommendations = _build_risk_recommendations(
            conservative_win_rate=conservative_win_rate,
            strong_win_rate=strong_win_rate,
            low_profit_factor=low_profit_factor,
            high_profit_factor=high_profit_factor,
            drawdown_alert_ratio=drawdown_alert_ratio,
            long_recovery_trades=long_recovery_trades,
        )

    # ------------------------------------------------------------------ #
    # Kelly                                                                #
    # ------------------------------------------------------------------ #

    def kelly_criterion(
        self, win_rate: float, avg_win: float, avg_loss: float
    ) -> KellyCriterionResult:
        """Size from a win probability and average win / loss amounts."""
        if avg_win == 0 or avg_loss == 0 or win_rate == 0:
            return KellyCriterionResult()

        payoff_ratio = avg_win / avg_loss
        kelly = (win_rate * payoff_ratio - (1 - win_rate)) / payoff_ratio

        safe_kelly = clip(kelly, 0.0, self._max_kelly)
        half_kelly = safe_kelly / 2
        recommended = clip(half_kelly * 100, self._min_risk, self._max_risk)

        guide = []
        for account_size in self._account_sizes:
            risk_amount = account_size * recommended / 100
            guide.append(PositionSizeGuide(
                risk_percent=recommended,
                account_size=account_size,
                risk_amount=risk_amount,
                suggested_position_size=risk_amount / avg_loss * avg_win,
            ))

        advice = self._kelly_advice.first(
            _KellyContext(win_rate=win_rate, kelly=kelly, recommended=recommended)
        )

        return KellyCriterionResult(
            kelly_percent=round(kelly * 100, 1),
            recommended_risk_percent=round(recommended, 1),
            half_kelly_percent=round(half_kelly * 100, 1),
            safe_kelly_percent=round(safe_kelly * 100, 1),
            position_size_guide=guide,
            advice=advice,
        )

    # ------------------------------------------------------------------ #
    # Full analysis                                                        #
    # ------------------------------------------------------------------ #

    def analyse(self, trades: Sequence[TradeRecord]) -> RiskAnalysis:
        """Payoff profile, Kelly sizing, drawdown and recommendations.

        Wins and losses are classified by the sign of ``pnl``.  The
        drawdown walk uses the order given.
        """
        if not trades:
            return RiskAnalysis()

        payoff = payoff_stats(t.pnl for t in trades)
        kelly = self.kelly_criterion(payoff.win_rate, payoff.avg_win, payoff.avg_loss)
        drawdown = calculate_drawdown_metrics(trades)

        recommendations = self._recommendations.all(_RiskContext(
            win_rate=payoff.win_rate,
            profit_factor=payoff.profit_factor,
            drawdown=drawdown,
        ))

        logger.debug(
            "Risk analysis over %d trades: win_rate=%.3f kelly=%.1f%% risk=%.1f%%",
            payoff.trades, payoff.win_rate, kelly.kelly_percent,
            kelly.recommended_risk_percent,
        )

        return RiskAnalysis(
            current_win_rate=payoff.win_rate,
            avg_win=payoff.avg_win,
            avg_loss=payoff.avg_loss,
            profit_factor=payoff.profit_factor,
            current_avg_risk_percent=average_risk_percent(trades),
            current_avg_risk_reward=payoff.risk_reward_ratio,
            expectancy=payoff.expectancy,
            kelly_criterion=kelly,
            drawdown_metrics=drawdown,
            recommendations=recommendations,
        )


def calculate_kelly_criterion(
    win_rate: float, avg_win: float, avg_loss: float
) -> KellyCriterionResult:
    """Kelly sizing with the default caps and account ladder."""
    return KellyRiskCalculator().kelly_criterion(win_rate, avg_win, avg_loss)
