"""Tests for ComplianceScorer: playbook rule adherence vs outcomes."""

import datetime as dt

import pytest

from journal_analytics.core.models import Strategy
from journal_analytics.journal.compliance import (
    LINK_TRADES_MESSAGE,
    ComplianceScorer,
    score_trade,
)

from .conftest import make_strategy, make_trade


def _linked(pnl, executed, strategy_id="s1", **fields):
    return make_trade(pnl, playbook_strategy_id=strategy_id, executed_rules=executed, **fields)


ALL_FOUR = ["r1", "r2", "r3", "r4"]


class TestScoreTrade:
    def test_partial(self):
        score = score_trade(_linked(-50, ["r2"], date="2024-04-02", instrument="NQ"), make_strategy())
        assert score.score == 0.25
        assert score.followed_rules == 1
        assert score.total_rules == 4
        assert score.missed_rules == ["Rule 1", "Rule 3", "Rule 4"]
        assert score.trade_date == dt.date(2024, 4, 2)
        assert score.instrument == "NQ"
        assert score.strategy_name == "Opening Range"

    def test_unknown_and_duplicate_rule_ids(self):
        score = score_trade(_linked(1, ["r1", "r1", "zzz"]), make_strategy())
        assert score.followed_rules == 1
        assert score.executed_rule_ids == ["r1", "zzz"]


class TestEmptyResults:
    def test_no_trades(self, compliance_scorer):
        result = compliance_scorer.analyse([], [make_strategy()])
        assert result.trade_scores == []
        assert result.recommendation == LINK_TRADES_MESSAGE

    def test_no_strategies(self, compliance_scorer):
        result = compliance_scorer.analyse([_linked(1, ALL_FOUR)], [])
        assert result.overall_score == 0
        assert result.recommendation == LINK_TRADES_MESSAGE

    def test_nothing_scorable(self, compliance_scorer):
        trades = [
            make_trade(1),
            _linked(1, ALL_FOUR, strategy_id="missing"),
            _linked(1, [], strategy_id="empty"),
        ]
        strategies = [make_strategy(), Strategy(id="empty", name="No rules")]
        result = compliance_scorer.analyse(trades, strategies)
        assert result.trade_scores == []
        assert result.recommendation == LINK_TRADES_MESSAGE


class TestAnalyse:
    def test_two_trades(self, compliance_scorer):
        trades = [_linked(100, ALL_FOUR), _linked(-50, ["r2"])]
        result = compliance_scorer.analyse(trades, [make_strategy()])

        assert [s.score for s in result.trade_scores] == [1.0, 0.25]
        assert result.overall_score == pytest.approx(0.625)
        assert result.trade_scores[1].missed_rules == ["Rule 1", "Rule 3", "Rule 4"]

        assert result.high_compliance.trades == 1
        assert result.high_compliance.win_rate == 1.0
        assert result.low_compliance.avg_pnl == -50
        assert result.recommendation == (
            "You have 2 scored trades. Log at least 10 linked trades for reliable "
            "compliance analysis."
        )

    def test_most_missed_rules(self, compliance_scorer):
        trades = [_linked(100, ALL_FOUR), _linked(-50, ["r2"])]
        result = compliance_scorer.analyse(trades, [make_strategy()])
        assert [r.rule_text for r in result.most_missed_rules] == [
            "Rule 1", "Rule 3", "Rule 4", "Rule 2",
        ]
        assert result.most_missed_rules[0].miss_count == 1
        assert result.most_missed_rules[0].total_trades == 2

    def test_most_missed_capped(self):
        scorer = ComplianceScorer(top_n=2)
        result = scorer.analyse([_linked(1, [])], [make_strategy()])
        assert len(result.most_missed_rules) == 2

    def test_threshold_is_inclusive(self, compliance_scorer):
        strategy = make_strategy(n_rules=10)
        trade = _linked(10, [f"r{i}" for i in range(1, 8)])
        result = compliance_scorer.analyse([trade], [strategy])
        assert result.trade_scores[0].score == pytest.approx(0.7)
        assert result.high_compliance.trades == 1
        assert result.low_compliance.trades == 0


class TestRecommendation:
    def test_discipline_pays(self, compliance_scorer):
        trades = [_linked(50, ALL_FOUR) for _ in range(6)] + [_linked(-50, ["r1"]) for _ in range(6)]
        result = compliance_scorer.analyse(trades, [make_strategy()])
        assert result.recommendation == (
            "When you follow 70%+ of your rules, you win 100% of trades vs 0% when you "
            "don't. Discipline pays."
        )

    def test_no_correlation(self, compliance_scorer):
        trades = [_linked(-50, ALL_FOUR) for _ in range(10)] + [_linked(50, []) for _ in range(2)]
        result = compliance_scorer.analyse(trades, [make_strategy()])
        assert result.recommendation.startswith(
            "Your compliance score doesn't yet correlate with better outcomes."
        )

    def test_fallback(self, compliance_scorer):
        trades = [_linked(50, ALL_FOUR) for _ in range(10)]
        result = compliance_scorer.analyse(trades, [make_strategy()])
        assert result.recommendation == (
            "Link more trades to strategies and check off executed rules for deeper "
            "compliance insights."
        )

    def test_to_dict_shape(self, compliance_scorer):
        result = compliance_scorer.analyse([_linked(1, ALL_FOUR)], [make_strategy()])
        d = result.to_dict()
        assert set(d["compliance_vs_outcome"]) == {"high_compliance", "low_compliance"}
        assert d["trade_scores"][0]["outcome"] == "win"
