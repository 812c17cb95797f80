"""Multi-dimension pattern recognition.

Slices the trade history by instrument, direction, entry hour, day of
week, session and setup, ranks the resulting patterns, tracks win and
loss streaks, builds a weekday-by-hour heatmap and turns the findings
into typed recommendations.

Usage::

    recogniser = PatternRecogniser(min_pattern_trades=2, top_n=5)
    result = recogniser.analyse(trades)
    for rec in result.recommendations:
        print(rec.type.value, rec.title)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..core.enums import Direction, RecommendationType
from ..core.models import TradeRecord
from .advanced import parse_hour
from .aggregator import sort_by_date
from .stats import safe_div

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Category labels, in the order groups are reported
INSTRUMENT = "Instrument"
DIRECTION = "Direction"
ENTRY_HOUR = "Entry Hour"
DAY_OF_WEEK = "Day of Week"
SESSION = "Session"
SETUP = "Setup"

WEAK_PATTERN_WIN_RATE = 0.35
DIRECTION_BIAS_GAP = 0.15
RELIABLE_SAMPLE = 30


@dataclass
class PatternStat:
    """Outcome of the trades sharing one attribute value.

    Break-even trades count as losses here.
    """

    label: str
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0
    total_pnl: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "total_trades": self.total_trades,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "avg_pnl": self.avg_pnl,
            "total_pnl": self.total_pnl,
        }


@dataclass
class PatternGroup:
    category: str
    patterns: list[PatternStat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "patterns": [p.to_dict() for p in self.patterns]}


@dataclass
class SmartRecommendation:
    type: RecommendationType
    title: str
    body: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "title": self.title, "body": self.body}


@dataclass
class StreakSummary:
    """``current_streak`` is positive for wins, negative for losses."""

    current_streak: int = 0
    best_win_streak: int = 0
    worst_loss_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_streak": self.current_streak,
            "best_win_streak": self.best_win_streak,
            "worst_loss_streak": self.worst_loss_streak,
        }


@dataclass
class HeatmapCell:
    day: str
    hour: int
    win_rate: float
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "hour": self.hour, "win_rate": self.win_rate, "count": self.count}


@dataclass
class PatternRecognitionResult:
    groups: list[PatternGroup] = field(default_factory=list)
    top_winning_patterns: list[PatternStat] = field(default_factory=list)
    top_losing_patterns: list[PatternStat] = field(default_factory=list)
    recommendations: list[SmartRecommendation] = field(default_factory=list)
    streaks: StreakSummary = field(default_factory=StreakSummary)
    weekly_heatmap: list[HeatmapCell] = field(default_factory=list)

    def group(self, category: str) -> PatternGroup | None:
        for g in self.groups:
            if g.category == category:
                return g
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "top_winning_patterns": [p.to_dict() for p in self.top_winning_patterns],
            "top_losing_patterns": [p.to_dict() for p in self.top_losing_patterns],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "streaks": self.streaks.to_dict(),
            "weekly_heatmap": [c.to_dict() for c in self.weekly_heatmap],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def format_hour(hour: int) -> str:
    """12-hour clock label, e.g. ``9`` -> ``"9:00 AM"``, ``0`` -> ``"12:00 AM"``."""
    suffix = "PM" if hour >= 12 else "AM"
    display = hour % 12 or 12
    return f"{display}:00 {suffix}"


def day_of_week(trade: TradeRecord) -> str:
    return DAY_NAMES[trade.date.weekday()]


def pattern_stat(label: str, trades: Sequence[TradeRecord]) -> PatternStat:
    wins = sum(1 for t in trades if t.pnl > 0)
    total = float(sum(t.pnl for t in trades))
    return PatternStat(
        label=label,
        total_trades=len(trades),
        wins=wins,
        losses=len(trades) - wins,
        win_rate=safe_div(wins, len(trades)),
        avg_pnl=safe_div(total, len(trades)),
        total_pnl=total,
    )


def _group_by(
    trades: Sequence[TradeRecord], key: Callable[[TradeRecord], Any]
) -> dict[Any, list[TradeRecord]]:
    groups: dict[Any, list[TradeRecord]] = defaultdict(list)
    for trade in trades:
        k = key(trade)
        if k is not None:
            groups[k].append(trade)
    return groups


def _direction_label(trade: TradeRecord) -> str | None:
    if trade.direction is Direction.LONG:
        return "Long"
    if trade.direction is Direction.SHORT:
        return "Short"
    return None


def build_groups(trades: Sequence[TradeRecord]) -> list[PatternGroup]:
    """Every non-empty attribute slice, in fixed category order."""
    groups: list[PatternGroup] = []

    def add(category: str, patterns: list[PatternStat]) -> None:
        if patterns:
            groups.append(PatternGroup(category=category, patterns=patterns))

    by_count = lambda p: -p.total_trades  # noqa: E731

    instruments = _group_by(trades, lambda t: t.instrument or None)
    add(INSTRUMENT, sorted((pattern_stat(k, v) for k, v in instruments.items()), key=by_count))

    directions = _group_by(trades, _direction_label)
    add(DIRECTION, [pattern_stat(k, v) for k, v in directions.items()])

    hours = _group_by(trades, lambda t: parse_hour(t.trade_start_time))
    add(ENTRY_HOUR, [pattern_stat(format_hour(h), hours[h]) for h in sorted(hours)])

    days = _group_by(trades, day_of_week)
    add(DAY_OF_WEEK, [pattern_stat(d, days[d]) for d in DAY_NAMES if d in days])

    sessions = _group_by(trades, lambda t: t.trade_session)
    add(SESSION, [pattern_stat(k, v) for k, v in sessions.items()])

    setups = _group_by(trades, lambda t: t.setup_name)
    add(SETUP, sorted((pattern_stat(k, v) for k, v in setups.items()), key=by_count))

    return groups


def streak_summary(trades: Sequence[TradeRecord]) -> StreakSummary:
    """Win / loss runs over the trades in the order given.

    Anything that is not a win extends the losing run.
    """
    if not trades:
        return StreakSummary()

    best_win = worst_loss = 0
    win_run = loss_run = 0
    for trade in trades:
        if trade.pnl > 0:
            win_run += 1
            loss_run = 0
            best_win = max(best_win, win_run)
        else:
            loss_run += 1
            win_run = 0
            worst_loss = max(worst_loss, loss_run)

    current = win_run if trades[-1].pnl > 0 else -loss_run
    return StreakSummary(
        current_streak=current, best_win_streak=best_win, worst_loss_streak=worst_loss
    )


def weekly_heatmap(trades: Sequence[TradeRecord]) -> list[HeatmapCell]:
    """Win rate per (weekday, entry hour), Monday first then by hour."""
    cells: dict[tuple[int, int], list[int]] = defaultdict(lambda: [0, 0])
    for trade in trades:
        hour = parse_hour(trade.trade_start_time)
        if hour is None:
            continue
        cell = cells[(trade.date.weekday(), hour)]
        cell[1] += 1
        if trade.pnl > 0:
            cell[0] += 1

    return [
        HeatmapCell(day=DAY_NAMES[day], hour=hour, win_rate=wins / count, count=count)
        for (day, hour), (wins, count) in sorted(cells.items())
    ]


# ---------------------------------------------------------------------------
# Recogniser
# ---------------------------------------------------------------------------

class PatternRecogniser:
    """Group, rank and summarise trade patterns.

    Parameters
    ----------
    min_pattern_trades : int
        Patterns with fewer trades are excluded from the rankings and
        the entry-hour comparison.  Default 2.
    top_n : int
        Length of the winning / losing pattern lists.  Default 5.
    small_sample_threshold : int
        Below this many trades a small-sample warning is added.
        Default 20.
    """

    def __init__(
        self,
        *,
        min_pattern_trades: int = 2,
        top_n: int = 5,
        small_sample_threshold: int = 20,
    ) -> None:
        self._min_trades = min_pattern_trades
        self._top_n = top_n
        self._small_sample = small_sample_threshold

    def analyse(self, trades: Sequence[TradeRecord]) -> PatternRecognitionResult:
        if not trades:
            return PatternRecognitionResult()

        groups = build_groups(trades)

        qualified = [
            PatternStat(**{**p.to_dict(), "label": f"{g.category}: {p.label}"})
            for g in groups
            for p in g.patterns
            if p.total_trades >= self._min_trades
        ]
        winning = sorted(qualified, key=lambda p: (-p.win_rate, -p.total_pnl))[: self._top_n]
        losing = sorted(qualified, key=lambda p: (p.win_rate, p.total_pnl))[: self._top_n]

        result = PatternRecognitionResult(
            groups=groups,
            top_winning_patterns=winning,
            top_losing_patterns=losing,
            streaks=streak_summary(sort_by_date(trades)),
            weekly_heatmap=weekly_heatmap(trades),
        )
        result.recommendations = self._recommend(result, len(trades))

        logger.debug(
            "Pattern recognition over %d trades: %d groups, %d ranked patterns",
            len(trades), len(groups), len(qualified),
        )
        return result

    # ------------------------------------------------------------------ #
    # Recommendations                                                      #
    # ------------------------------------------------------------------ #

    def _recommend(
        self, result: PatternRecognitionResult, trade_count: int
    ) -> list[SmartRecommendation]:
        recs: list[SmartRecommendation] = []

        if result.top_winning_patterns:
            best = result.top_winning_patterns[0]
            recs.append(SmartRecommendation(
                type=RecommendationType.STRENGTH,
                title=f"{best.label} is your edge",
                body=(
                    f"{best.win_rate * 100:.0f}% win rate across {best.total_trades} trades "
                    f"with ${best.total_pnl:.0f} total P&L. Double down on this pattern."
                ),
            ))

        if result.top_losing_patterns:
            worst = result.top_losing_patterns[0]
            if worst.win_rate < WEAK_PATTERN_WIN_RATE:
                recs.append(SmartRecommendation(
                    type=RecommendationType.WARNING,
                    title=f"Avoid {worst.label}",
                    body=(
                        f"Only {worst.win_rate * 100:.0f}% win rate across "
                        f"{worst.total_trades} trades. Consider removing this from your "
                        f"playbook or refining the setup criteria."
                    ),
                ))

        direction_tip = self._direction_bias(result.group(DIRECTION))
        if direction_tip is not None:
            recs.append(direction_tip)

        hour_tip = self._entry_window(result.group(ENTRY_HOUR))
        if hour_tip is not None:
            recs.append(hour_tip)

        if trade_count < self._small_sample:
            recs.append(SmartRecommendation(
                type=RecommendationType.WARNING,
                title="Small sample size",
                body=(
                    f"You have {trade_count} trades logged. Patterns become more reliable "
                    f"after {RELIABLE_SAMPLE}+ trades. Keep logging consistently."
                ),
            ))

        return recs

    @staticmethod
    def _direction_bias(group: PatternGroup | None) -> SmartRecommendation | None:
        if group is None:
            return None
        by_label = {p.label: p for p in group.patterns}
        long_p, short_p = by_label.get("Long"), by_label.get("Short")
        if long_p is None or short_p is None:
            return None
        if abs(long_p.win_rate - short_p.win_rate) <= DIRECTION_BIAS_GAP:
            return None

        better, worse = (long_p, short_p) if long_p.win_rate > short_p.win_rate else (short_p, long_p)
        return SmartRecommendation(
            type=RecommendationType.TIP,
            title=f"{better.label} bias detected",
            body=(
                f"Your {better.label} trades win {better.win_rate * 100:.0f}% vs "
                f"{worse.win_rate * 100:.0f}% for {worse.label}. Consider sizing down on "
                f"{worse.label} entries."
            ),
        )

    def _entry_window(self, group: PatternGroup | None) -> SmartRecommendation | None:
        if group is None:
            return None
        qualified = [p for p in group.patterns if p.total_trades >= self._min_trades]
        if not qualified:
            return None

        best = sorted(qualified, key=lambda p: -p.win_rate)[0]
        worst = sorted(qualified, key=lambda p: p.win_rate)[0]
        if best.label == worst.label:
            return None
        return SmartRecommendation(
            type=RecommendationType.TIP,
            title=f"Best window: {best.label}",
            body=(
                f"Your entries at {best.label} win {best.win_rate * 100:.0f}% of the time. "
                f"Entries at {worst.label} only win {worst.win_rate * 100:.0f}%. Consider "
                f"restricting trading to your peak hours."
            ),
        )
