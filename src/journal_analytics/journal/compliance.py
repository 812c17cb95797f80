"""Playbook rule compliance scoring.

A trade linked to a playbook strategy is scored by the share of that
strategy's rules it checked off.  Scores are then related to outcomes
(high vs low compliance) and the rules skipped most often are ranked.

Usage::

    scorer = ComplianceScorer(high_compliance_threshold=0.7)
    analysis = scorer.analyse(trades, strategies)
    print(analysis.overall_score, analysis.recommendation)
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.enums import TradeOutcome
from ..core.models import Strategy, TradeRecord
from .decision_table import DecisionTable, Rule
from .stats import mean, safe_div

logger = logging.getLogger(__name__)

LINK_TRADES_MESSAGE = (
    "Link trades to playbook strategies and check off rules during execution "
    "for compliance tracking."
)


@dataclass
class TradeComplianceScore:
    """Rule adherence of one linked trade.  ``score`` is in [0, 1]."""

    trade_id: str
    trade_date: dt.date
    instrument: str
    strategy_name: str
    executed_rule_ids: list[str]
    total_rules: int
    followed_rules: int
    score: float
    missed_rules: list[str]  # Rule texts
    pnl: float
    outcome: TradeOutcome

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "trade_date": self.trade_date.isoformat(),
            "instrument": self.instrument,
            "strategy_name": self.strategy_name,
            "executed_rule_ids": list(self.executed_rule_ids),
            "total_rules": self.total_rules,
            "followed_rules": self.followed_rules,
            "score": self.score,
            "missed_rules": list(self.missed_rules),
            "pnl": self.pnl,
            "outcome": self.outcome.value,
        }


@dataclass
class ComplianceBucket:
    trades: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"trades": self.trades, "win_rate": self.win_rate, "avg_pnl": self.avg_pnl}


@dataclass
class RuleMissStat:
    rule_text: str
    miss_count: int = 0
    total_trades: int = 0

    @property
    def miss_rate(self) -> float:
        return safe_div(self.miss_count, self.total_trades)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_text": self.rule_text,
            "miss_count": self.miss_count,
            "total_trades": self.total_trades,
        }


@dataclass
class ComplianceAnalysis:
    """Aggregate compliance.  ``overall_score`` is 0 when nothing was
    scored; an empty ``trade_scores`` tells that apart from a real 0."""

    overall_score: float = 0.0
    trade_scores: list[TradeComplianceScore] = field(default_factory=list)
    high_compliance: ComplianceBucket = field(default_factory=ComplianceBucket)
    low_compliance: ComplianceBucket = field(default_factory=ComplianceBucket)
    most_missed_rules: list[RuleMissStat] = field(default_factory=list)
    recommendation: str = LINK_TRADES_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "trade_scores": [s.to_dict() for s in self.trade_scores],
            "compliance_vs_outcome": {
                "high_compliance": self.high_compliance.to_dict(),
                "low_compliance": self.low_compliance.to_dict(),
            },
            "most_missed_rules": [r.to_dict() for r in self.most_missed_rules],
            "recommendation": self.recommendation,
        }


def score_trade(trade: TradeRecord, strategy: Strategy) -> TradeComplianceScore:
    """Score one trade against its strategy's checklist."""
    executed = set(trade.executed_rules)
    followed = sum(1 for rule in strategy.rules if rule.id in executed)
    total = len(strategy.rules)
    return TradeComplianceScore(
        trade_id=trade.id,
        trade_date=trade.date,
        instrument=trade.instrument,
        strategy_name=strategy.name,
        # De-duplicated, first-seen order
        executed_rule_ids=list(dict.fromkeys(trade.executed_rules)),
        total_rules=total,
        followed_rules=followed,
        score=safe_div(followed, total),
        missed_rules=[rule.text for rule in strategy.rules if rule.id not in executed],
        pnl=trade.pnl,
        outcome=trade.outcome,
    )


def _bucket(scores: Sequence[TradeComplianceScore]) -> ComplianceBucket:
    if not scores:
        return ComplianceBucket()
    wins = sum(1 for s in scores if s.pnl > 0)
    return ComplianceBucket(
        trades=len(scores),
        win_rate=wins / len(scores),
        avg_pnl=mean([s.pnl for s in scores]),
    )


@dataclass
class _Context:
    scored: int
    high: ComplianceBucket
    low: ComplianceBucket


def _build_recommendation_table(
    threshold: float, min_scored_trades: int
) -> DecisionTable[_Context]:
    both = lambda c: c.high.trades > 0 and c.low.trades > 0  # noqa: E731
    return DecisionTable([
        Rule(
            "too_few_scored",
            lambda c: c.scored < min_scored_trades,
            lambda c: (
                f"You have {c.scored} scored trades. Log at least {min_scored_trades} "
                f"linked trades for reliable compliance analysis."
            ),
        ),
        Rule(
            "discipline_pays",
            lambda c: both(c) and c.high.win_rate > c.low.win_rate,
            lambda c: (
                f"When you follow {threshold * 100:.0f}%+ of your rules, you win "
                f"{c.high.win_rate * 100:.0f}% of trades vs {c.low.win_rate * 100:.0f}% "
                f"when you don't. Discipline pays."
            ),
        ),
        Rule(
            "no_correlation",
            both,
            "Your compliance score doesn't yet correlate with better outcomes. Review "
            "whether your rules accurately reflect your edge, or collect more data.",
        ),
        Rule(
            "fallback",
            lambda c: True,
            "Link more trades to strategies and check off executed rules for deeper "
            "compliance insights.",
        ),
    ])


class ComplianceScorer:
    """Score linked trades against their playbook strategies.

    Parameters
    ----------
    high_compliance_threshold : float
        Score at or above which a trade counts as high compliance.
        Default 0.7.
    min_scored_trades : int
        Scored-trade count below which the recommendation asks for more
        data.  Default 10.
    top_n : int
        Length of the most-missed rule list.  Default 5.
    """

    def __init__(
        self,
        *,
        high_compliance_threshold: float = 0.7,
        min_scored_trades: int = 10,
        top_n: int = 5,
    ) -> None:
        self._threshold = high_compliance_threshold
        self._top_n = top_n
        self._recommendations = _build_recommendation_table(
            high_compliance_threshold, min_scored_trades
        )

    def analyse(
        self,
        trades: Sequence[TradeRecord],
        strategies: Sequence[Strategy],
    ) -> ComplianceAnalysis:
        if not trades or not strategies:
            return ComplianceAnalysis()

        by_id = {s.id: s for s in strategies}
        scores: list[TradeComplianceScore] = []
        misses: dict[str, RuleMissStat] = {}

        for trade in trades:
            if not trade.playbook_strategy_id:
                continue
            strategy = by_id.get(trade.playbook_strategy_id)
            if strategy is None or not strategy.rules:
                continue

            executed = set(trade.executed_rules)
            for rule in strategy.rules:
                stat = misses.setdefault(rule.id, RuleMissStat(rule_text=rule.text))
                stat.total_trades += 1
                if rule.id not in executed:
                    stat.miss_count += 1

            scores.append(score_trade(trade, strategy))

        if not scores:
            return ComplianceAnalysis()

        high = _bucket([s for s in scores if s.score >= self._threshold])
        low = _bucket([s for s in scores if s.score < self._threshold])
        most_missed = sorted(misses.values(), key=lambda r: -r.miss_rate)[: self._top_n]

        logger.debug(
            "Compliance over %d trades: %d scored, %d high / %d low",
            len(trades), len(scores), high.trades, low.trades,
        )

        return ComplianceAnalysis(
            overall_score=mean([s.score for s in scores]),
            trade_scores=scores,
            high_compliance=high,
            low_compliance=low,
            most_missed_rules=most_missed,
            recommendation=self._recommendations.first(
                _Context(scored=len(scores), high=high, low=low)
            ),
        )
