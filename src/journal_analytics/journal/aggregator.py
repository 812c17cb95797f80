"""Headline totals and the equity curve."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Sequence

from ..core.models import TradeRecord
from .stats import payoff_stats


@dataclass
class EquityPoint:
    """Cumulative P&L after one trade."""

    date: dt.date
    cumulative_pnl: float
    trade_pnl: float = 0.0
    trade_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "cumulative_pnl": self.cumulative_pnl,
            "trade_pnl": self.trade_pnl,
            "trade_id": self.trade_id,
        }


@dataclass
class TradeSummary:
    """Totals over a trade list.  ``win_rate`` is a percentage."""

    total_pnl: float = 0.0
    win_count: int = 0
    loss_count: int = 0
    breakeven_count: int = 0
    trades: int = 0
    win_rate: float = 0.0
    avg_pnl: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_pnl": self.total_pnl,
            "win_count": self.win_count,
            "loss_count": self.loss_count,
            "breakeven_count": self.breakeven_count,
            "trades": self.trades,
            "win_rate": self.win_rate,
            "avg_pnl": self.avg_pnl,
        }


def summarize_trades(trades: Sequence[TradeRecord]) -> TradeSummary:
    """Total P&L and win rate, classifying wins and losses by P&L sign."""
    if not trades:
        return TradeSummary()

    payoff = payoff_stats(t.pnl for t in trades)
    return TradeSummary(
        total_pnl=payoff.total_pnl,
        win_count=payoff.wins,
        loss_count=payoff.losses,
        breakeven_count=payoff.breakeven,
        trades=payoff.trades,
        win_rate=payoff.win_rate * 100,
        avg_pnl=payoff.avg_pnl,
    )


def sort_by_date(trades: Sequence[TradeRecord]) -> list[TradeRecord]:
    """Stable ascending sort; same-day trades keep their given order."""
    return sorted(trades, key=lambda t: t.date)


def build_equity_curve(trades: Sequence[TradeRecord]) -> list[EquityPoint]:
    """One point per trade, in date order, carrying the running total."""
    curve: list[EquityPoint] = []
    running = 0.0
    for trade in sort_by_date(trades):
        running += trade.pnl
        curve.append(EquityPoint(
            date=trade.date,
            cumulative_pnl=running,
            trade_pnl=trade.pnl,
            trade_id=trade.id,
        ))
    return curve
