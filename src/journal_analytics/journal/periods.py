"""Look-back windows and calendar-period summaries.

``filter_window`` narrows a trade list to a relative range ending at
the injected clock's "now" (7d / 30d / 90d / ytd / all).  ``report``
buckets trades by day, ISO week, month or year and summarises each
bucket plus the whole set.

Usage::

    reporter = PeriodReporter(clock=WallClock())
    recent = reporter.filter_window(trades, "30d")
    report = reporter.report(recent, period="weekly")
    for bucket in report.buckets:
        print(bucket.period_key, bucket.total_pnl)
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.clock import IClock, WallClock
from ..core.enums import LookbackWindow, ReportPeriod
from ..core.models import TradeRecord

logger = logging.getLogger(__name__)

_WINDOW_DAYS = {
    LookbackWindow.DAYS_7: 7,
    LookbackWindow.DAYS_30: 30,
    LookbackWindow.DAYS_90: 90,
}


@dataclass
class PeriodBucket:
    """Summary of the trades in one calendar bucket.

    ``profit_factor`` is gross wins over gross losses here (``inf``
    with no losing trades, 0.0 with neither).
    """

    period_key: str
    trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    profit_factor: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_key": self.period_key,
            "trades": self.trades,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "total_pnl": self.total_pnl,
            "avg_pnl": self.avg_pnl,
            "profit_factor": self.profit_factor,
            "best_trade": self.best_trade,
            "worst_trade": self.worst_trade,
        }


@dataclass
class PeriodReport:
    period: ReportPeriod
    buckets: list[PeriodBucket] = field(default_factory=list)
    totals: PeriodBucket = field(default_factory=lambda: PeriodBucket(period_key="all"))

    def to_dict(self) -> dict[str, Any]:
        totals = self.totals.to_dict()
        totals.pop("period_key", None)
        return {
            "period": self.period.value,
            "buckets": [b.to_dict() for b in self.buckets],
            "totals": totals,
        }


def period_key(date: dt.date, period: ReportPeriod) -> str:
    """Bucket key for a trade date, e.g. ``2024-W07`` for weekly."""
    if period is ReportPeriod.WEEKLY:
        year, week, _ = date.isocalendar()
        return f"{year}-W{week:02d}"
    if period is ReportPeriod.MONTHLY:
        return date.strftime("%Y-%m")
    if period is ReportPeriod.YEARLY:
        return date.strftime("%Y")
    return date.strftime("%Y-%m-%d")


class PeriodReporter:
    """Clock-relative filtering and calendar bucketing.

    Parameters
    ----------
    clock : IClock, optional
        Source of "now" for look-back windows.  Defaults to the wall
        clock.
    decimal_places : int
        Rounding applied to reported figures.  Default 4.
    """

    def __init__(self, clock: IClock | None = None, *, decimal_places: int = 4) -> None:
        self._clock = clock or WallClock()
        self._dp = decimal_places

    # ------------------------------------------------------------------ #
    # Look-back windows                                                    #
    # ------------------------------------------------------------------ #

    def window_start(self, window: LookbackWindow | str) -> dt.date | None:
        """First date inside the window, or ``None`` for ``all``."""
        window = LookbackWindow(window)
        today = self._clock.now().date()
        if window is LookbackWindow.ALL:
            return None
        if window is LookbackWindow.YEAR_TO_DATE:
            return dt.date(today.year, 1, 1)
        return today - dt.timedelta(days=_WINDOW_DAYS[window])

    def filter_window(
        self, trades: Sequence[TradeRecord], window: LookbackWindow | str = LookbackWindow.ALL
    ) -> list[TradeRecord]:
        """Trades dated on or after the window start, order preserved.

        Raises:
            ValueError: ``window`` is not a known look-back window.
        """
        window = LookbackWindow(window)
        start = self.window_start(window)
        if start is None:
            return list(trades)
        kept = [t for t in trades if t.date >= start]
        logger.debug("Window %s from %s kept %d of %d trades", window.value, start, len(kept), len(trades))
        return kept

    # ------------------------------------------------------------------ #
    # Period summaries                                                     #
    # ------------------------------------------------------------------ #

    def report(
        self,
        trades: Sequence[TradeRecord],
        period: ReportPeriod | str = ReportPeriod.DAILY,
    ) -> PeriodReport:
        """Per-bucket and overall statistics, buckets in key order.

        Raises:
            ValueError: ``period`` is not a known report period.
        """
        period = ReportPeriod(period)
        if not trades:
            return PeriodReport(period=period)

        buckets: dict[str, list[TradeRecord]] = defaultdict(list)
        for trade in trades:
            buckets[period_key(trade.date, period)].append(trade)

        return PeriodReport(
            period=period,
            buckets=[self._bucket_stats(key, buckets[key]) for key in sorted(buckets)],
            totals=self._bucket_stats("all", trades),
        )

    def _bucket_stats(self, key: str, group: Sequence[TradeRecord]) -> PeriodBucket:
        dp = self._dp
        pnls = [t.pnl for t in group]
        gross_wins = sum(p for p in pnls if p > 0)
        gross_losses = sum(-p for p in pnls if p < 0)
        wins = sum(1 for p in pnls if p > 0)
        losses = sum(1 for p in pnls if p < 0)
        total = sum(pnls)

        if gross_losses > 0:
            pf = round(gross_wins / gross_losses, dp)
        else:
            pf = math.inf if gross_wins > 0 else 0.0

        return PeriodBucket(
            period_key=key,
            trades=len(group),
            wins=wins,
            losses=losses,
            win_rate=round(wins / len(group), dp),
            total_pnl=round(total, dp),
            avg_pnl=round(total / len(group), dp),
            profit_factor=pf,
            best_trade=round(max(pnls), dp),
            worst_trade=round(min(pnls), dp),
        )
