"""Tests for headline totals and the equity curve."""

import datetime as dt

import pytest

from journal_analytics.journal.aggregator import (
    build_equity_curve,
    sort_by_date,
    summarize_trades,
)

from .conftest import make_trade, make_trades


class TestSummarizeTrades:
    def test_empty(self):
        summary = summarize_trades([])
        assert summary.total_pnl == 0.0
        assert summary.trades == 0
        assert summary.win_rate == 0.0

    def test_one_win_one_loss(self):
        summary = summarize_trades(make_trades([100, -50]))
        assert summary.total_pnl == 50.0
        assert summary.win_count == 1
        assert summary.loss_count == 1
        assert summary.win_rate == 50.0
        assert summary.avg_pnl == 25.0

    def test_breakeven_is_neither_win_nor_loss(self):
        summary = summarize_trades(make_trades([10, 0, -10, 0]))
        assert summary.win_count == 1
        assert summary.loss_count == 1
        assert summary.breakeven_count == 2
        assert summary.win_rate == 25.0

    def test_classifies_on_pnl_not_outcome(self):
        trade = make_trade(-20, outcome="win")
        summary = summarize_trades([trade])
        assert summary.win_count == 0
        assert summary.loss_count == 1

    def test_to_dict(self):
        d = summarize_trades(make_trades([5])).to_dict()
        assert d["win_rate"] == 100.0
        assert set(d) == {
            "total_pnl", "win_count", "loss_count", "breakeven_count",
            "trades", "win_rate", "avg_pnl",
        }


class TestEquityCurve:
    def test_empty(self):
        assert build_equity_curve([]) == []

    def test_sorted_by_date_with_running_total(self):
        trades = [
            make_trade(30, date="2024-01-03"),
            make_trade(100, date="2024-01-01"),
            make_trade(-50, date="2024-01-02"),
        ]
        curve = build_equity_curve(trades)
        assert [p.date for p in curve] == [
            dt.date(2024, 1, 1), dt.date(2024, 1, 2), dt.date(2024, 1, 3),
        ]
        assert [p.cumulative_pnl for p in curve] == [100, 50, 80]

    def test_same_day_keeps_input_order(self):
        first = make_trade(1, date="2024-01-01", id="a")
        second = make_trade(2, date="2024-01-01", id="b")
        curve = build_equity_curve([first, second])
        assert [p.trade_id for p in curve] == ["a", "b"]

    def test_last_point_is_total(self):
        trades = make_trades([12.5, -3.25, 7.0, -1.0])
        curve = build_equity_curve(trades)
        assert curve[-1].cumulative_pnl == pytest.approx(sum(t.pnl for t in trades))

    def test_point_to_dict(self):
        [point] = build_equity_curve([make_trade(10, date="2024-05-06", id="x")])
        assert point.to_dict() == {
            "date": "2024-05-06",
            "cumulative_pnl": 10.0,
            "trade_pnl": 10.0,
            "trade_id": "x",
        }


class TestSortByDate:
    def test_does_not_mutate_input(self):
        trades = [make_trade(1, date="2024-02-01"), make_trade(2, date="2024-01-01")]
        ordered = sort_by_date(trades)
        assert [t.pnl for t in ordered] == [2, 1]
        assert [t.pnl for t in trades] == [1, 2]
