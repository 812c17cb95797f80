"""Tests for record normalization: defaults, coercion and skipping."""

import datetime as dt
import logging

import pytest
from pydantic import ValidationError

from journal_analytics.core.enums import Direction, TradeOutcome
from journal_analytics.core.models import TradeRecord
from journal_analytics.journal.normalizer import (
    normalize_strategies,
    normalize_trades,
    normalize_trades_with_report,
)

from .conftest import make_trade


class TestTradeDefaults:
    """Missing and loose fields are filled in."""

    def test_none_is_empty_batch(self):
        assert normalize_trades(None) == []

    def test_minimal_row(self):
        [trade] = normalize_trades([{"id": 1, "date": "2024-02-03"}])
        assert trade.id == "1"
        assert trade.date == dt.date(2024, 2, 3)
        assert trade.pnl == 0.0
        assert trade.psychology_factors == []
        assert trade.executed_rules == []
        assert trade.setup_name is None
        assert trade.direction is None

    def test_none_numbers_become_zero(self):
        [trade] = normalize_trades([
            {"date": "2024-01-01", "pnl": None, "size": None, "entry_price": ""}
        ])
        assert trade.pnl == 0.0
        assert trade.size == 0.0
        assert trade.entry_price == 0.0

    def test_single_string_tag_becomes_list(self):
        [trade] = normalize_trades([
            {"date": "2024-01-01", "psychology_factors": "bad_fomo", "good_habits": None}
        ])
        assert trade.psychology_factors == ["bad_fomo"]
        assert trade.good_habits == []

    def test_unknown_direction_is_none(self):
        rows = [
            {"date": "2024-01-01", "direction": "sideways"},
            {"date": "2024-01-01", "direction": " Long "},
        ]
        first, second = normalize_trades(rows)
        assert first.direction is None
        assert second.direction is Direction.LONG

    def test_iso_timestamp_date(self):
        [trade] = normalize_trades([{"date": "2024-03-05T14:30:00Z"}])
        assert trade.date == dt.date(2024, 3, 5)

    def test_blank_setup_name_is_none(self):
        [trade] = normalize_trades([{"date": "2024-01-01", "setup_name": "  "}])
        assert trade.setup_name is None


class TestOutcome:
    def test_missing_outcome_derived_from_pnl(self):
        win, loss, flat = normalize_trades([
            {"date": "2024-01-01", "pnl": 5},
            {"date": "2024-01-01", "pnl": -5},
            {"date": "2024-01-01", "pnl": 0},
        ])
        assert win.outcome is TradeOutcome.WIN
        assert loss.outcome is TradeOutcome.LOSS
        assert flat.outcome is TradeOutcome.BREAKEVEN

    def test_supplied_outcome_kept_even_if_inconsistent(self):
        [trade] = normalize_trades([{"date": "2024-01-01", "pnl": -10, "outcome": "win"}])
        assert trade.outcome is TradeOutcome.WIN
        assert trade.pnl_outcome is TradeOutcome.LOSS
        assert not trade.is_win


class TestMalformedRows:
    """Bad rows are skipped and counted, never raised."""

    def test_skips_and_counts(self):
        rows = [
            {"date": "2024-01-01", "pnl": 10},
            42,
            {"date": "not-a-date"},
            {"date": "2024-01-01", "pnl": "abc"},
            {"date": "2024-01-01", "pnl": float("nan")},
            {"pnl": 5},
        ]
        result = normalize_trades_with_report(rows)
        assert len(result.records) == 1
        assert result.skipped == 5
        assert result.errors[0].index == 1

    def test_logs_warning_with_count(self, caplog):
        with caplog.at_level(logging.WARNING):
            normalize_trades([{"date": "2024-01-01"}, "junk", None])
        assert "Skipped 2 malformed TradeRecord" in caplog.text

    def test_non_iterable_batch_is_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = normalize_trades_with_report(5)
        assert result.records == []
        assert result.skipped == 0
        assert normalize_strategies(5) == []
        assert "Expected a batch of TradeRecord records, got int" in caplog.text

    def test_no_warning_when_clean(self, caplog):
        with caplog.at_level(logging.WARNING):
            normalize_trades([{"date": "2024-01-01"}])
        assert caplog.text == ""

    def test_trade_record_passes_through(self):
        trade = make_trade(12.5)
        assert normalize_trades([trade]) == [trade]

    def test_records_are_frozen(self):
        [trade] = normalize_trades([{"date": "2024-01-01"}])
        assert isinstance(trade, TradeRecord)
        with pytest.raises(ValidationError):
            trade.pnl = 5


class TestStrategies:
    def test_rules_normalized(self):
        [strategy] = normalize_strategies([{
            "id": "s1",
            "name": "ORB",
            "rules": [{"id": "r1", "text": "Wait for range", "phase": "entry", "required": True}],
        }])
        assert strategy.rule_ids == ["r1"]
        assert strategy.rules[0].required is True

    def test_missing_rules_become_empty(self):
        [strategy] = normalize_strategies([{"id": "s1", "rules": None}])
        assert strategy.rules == []

    def test_strategy_without_id_skipped(self):
        assert normalize_strategies([{"name": "nameless"}, {"id": "s2"}])[0].id == "s2"
