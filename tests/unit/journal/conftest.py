"""Shared fixtures and record factories for journal tests."""

from __future__ import annotations

import itertools

import pytest

from journal_analytics.core.models import Strategy, StrategyRule, TradeRecord
from journal_analytics.journal.advanced import AdvancedAnalyser
from journal_analytics.journal.compliance import ComplianceScorer
from journal_analytics.journal.patterns import PatternRecogniser
from journal_analytics.journal.psychology import PsychologyAnalyser
from journal_analytics.journal.risk import KellyRiskCalculator
from journal_analytics.journal.setups import SetupAnalyser

_trade_ids = itertools.count(1)


def make_trade(pnl: float = 0.0, date: str = "2024-01-01", **fields) -> TradeRecord:
    """Helper to create a TradeRecord with sensible defaults."""
    fields.setdefault("id", f"t{next(_trade_ids)}")
    fields.setdefault("instrument", "ES")
    return TradeRecord(date=date, pnl=pnl, **fields)


def make_trades(pnls, date: str = "2024-01-01", **fields) -> list[TradeRecord]:
    """One trade per P&L value, all on the same date."""
    return [make_trade(p, date=date, **fields) for p in pnls]


def make_strategy(strategy_id: str = "s1", n_rules: int = 4, name: str = "Opening Range") -> Strategy:
    """Helper to create a Strategy with rules ``r1..rN`` / ``Rule 1..N``."""
    return Strategy(
        id=strategy_id,
        name=name,
        rules=[
            StrategyRule(id=f"r{i}", text=f"Rule {i}", phase="entry")
            for i in range(1, n_rules + 1)
        ],
    )


@pytest.fixture
def advanced_analyser():
    return AdvancedAnalyser()


@pytest.fixture
def risk_calculator():
    return KellyRiskCalculator()


@pytest.fixture
def setup_analyser():
    return SetupAnalyser()


@pytest.fixture
def psychology_analyser(habit_catalog):
    return PsychologyAnalyser(habit_catalog)


@pytest.fixture
def compliance_scorer():
    return ComplianceScorer()


@pytest.fixture
def pattern_recogniser():
    return PatternRecogniser()
