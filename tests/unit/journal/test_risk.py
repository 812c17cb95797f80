"""Tests for Kelly sizing, drawdown tracking and risk recommendations."""

import math

import pytest

from journal_analytics.journal.risk import (
    INSUFFICIENT_DATA_ADVICE,
    KellyRiskCalculator,
    average_risk_percent,
    calculate_drawdown_metrics,
    calculate_kelly_criterion,
)

from .conftest import make_trade, make_trades


class TestKellyCriterion:
    def test_degenerate_inputs(self):
        for args in [(0, 100, 50), (0.5, 0, 50), (0.5, 100, 0)]:
            kelly = calculate_kelly_criterion(*args)
            assert kelly.kelly_percent == 0
            assert kelly.recommended_risk_percent == 1
            assert kelly.half_kelly_percent == 0.5
            assert kelly.position_size_guide == []
            assert kelly.advice == INSUFFICIENT_DATA_ADVICE

    def test_even_payoff_capped(self):
        """p=0.5, b=2: Kelly 25%, half-Kelly 12.5% capped at 5%."""
        kelly = calculate_kelly_criterion(0.5, 100, 50)
        assert kelly.kelly_percent == 25.0
        assert kelly.safe_kelly_percent == 25.0
        assert kelly.half_kelly_percent == 12.5
        assert kelly.recommended_risk_percent == 5.0
        assert kelly.advice == (
            "Risk 5.0% per trade based on your 50.0% win rate and 5.0x risk-reward ratio."
        )

    def test_low_win_rate_advice(self):
        kelly = calculate_kelly_criterion(0.3, 300, 100)
        assert kelly.recommended_risk_percent == 3.3
        assert kelly.advice == (
            "With a 30.0% win rate, use conservative 1% risk per trade until consistency improves."
        )

    def test_aggressive_kelly_advice(self):
        kelly = calculate_kelly_criterion(0.8, 300, 100)
        assert kelly.kelly_percent == 73.3
        assert kelly.safe_kelly_percent == 25.0
        assert kelly.advice == "Your Kelly Criterion is 73.3%, but use 5.0% (half-Kelly) for safety."

    def test_negative_edge_floors_at_min_risk(self):
        kelly = calculate_kelly_criterion(0.45, 100, 100)
        assert kelly.kelly_percent == -10.0
        assert kelly.safe_kelly_percent == 0.0
        assert kelly.half_kelly_percent == 0.0
        assert kelly.recommended_risk_percent == 0.5
        assert kelly.advice == (
            "Risk 0.5% per trade based on your 45.0% win rate and 0.4x risk-reward ratio."
        )

    def test_position_size_guide(self):
        kelly = calculate_kelly_criterion(0.5, 100, 50)
        assert [g.account_size for g in kelly.position_size_guide] == [
            1000, 5000, 10000, 25000, 50000, 100000,
        ]
        first = kelly.position_size_guide[0]
        assert first.risk_amount == pytest.approx(50.0)
        assert first.suggested_position_size == pytest.approx(100.0)

    def test_custom_ladder_and_cap(self):
        calculator = KellyRiskCalculator(account_sizes=[2000], max_risk_percent=2.0)
        kelly = calculator.kelly_criterion(0.5, 100, 50)
        assert kelly.recommended_risk_percent == 2.0
        assert len(kelly.position_size_guide) == 1
        assert kelly.position_size_guide[0].risk_amount == pytest.approx(40.0)


class TestDrawdownMetrics:
    def test_empty(self):
        metrics = calculate_drawdown_metrics([])
        assert metrics.max_drawdown == 0
        assert metrics.current_drawdown == 0
        assert metrics.recovery_trades == 0

    def test_recovered(self):
        metrics = calculate_drawdown_metrics(make_trades([100, -50, 100]))
        assert metrics.max_drawdown == 50.0
        assert metrics.current_drawdown == 0.0
        assert metrics.recovery_trades == 1

    def test_counter_restarts_each_episode(self):
        metrics = calculate_drawdown_metrics(make_trades([100, -10, -10, 200, -10]))
        assert metrics.max_drawdown == 20.0
        assert metrics.current_drawdown == 3.6
        assert metrics.recovery_trades == 1

    def test_loss_from_zero_measured_against_one_unit(self):
        metrics = calculate_drawdown_metrics(make_trades([-2]))
        assert metrics.max_drawdown == 200.0


class TestAverageRiskPercent:
    def test_stop_distance_over_move(self):
        trades = [
            make_trade(20, entry_price=100, stop_loss=95, exit_price=110, size=2),
            make_trade(0, entry_price=100, stop_loss=95, exit_price=100, size=2),
            make_trade(10, entry_price=100, stop_loss=100, exit_price=105, size=2),
        ]
        assert average_risk_percent(trades) == 50.0

    def test_no_prices(self):
        assert average_risk_percent(make_trades([10, -10])) == 0.0


class TestAnalyse:
    def test_empty(self, risk_calculator):
        analysis = risk_calculator.analyse([])
        assert analysis.current_win_rate == 0
        assert analysis.profit_factor == 1
        assert analysis.current_avg_risk_reward == 1
        assert analysis.kelly_criterion.kelly_percent == 0
        assert analysis.kelly_criterion.recommended_risk_percent == 1
        assert analysis.kelly_criterion.half_kelly_percent == 0.5
        assert analysis.kelly_criterion.advice == INSUFFICIENT_DATA_ADVICE
        assert analysis.drawdown_metrics.max_drawdown == 0
        assert analysis.recommendations == []

    def test_one_win_one_loss(self, risk_calculator):
        analysis = risk_calculator.analyse(make_trades([100, -50]))
        assert analysis.current_win_rate == 0.5
        assert analysis.avg_win == 100
        assert analysis.avg_loss == 50
        assert analysis.profit_factor == 2
        assert analysis.current_avg_risk_reward == 2
        assert analysis.expectancy == 25
        assert analysis.kelly_criterion.kelly_percent == 25.0
        assert analysis.drawdown_metrics.max_drawdown == 50.0
        assert analysis.recommendations == [
            "You're in a significant drawdown (50.0% vs a worst of 50.0%). "
            "Consider reducing position size temporarily."
        ]

    def test_all_winners(self, risk_calculator):
        analysis = risk_calculator.analyse(make_trades([100, 50]))
        assert math.isinf(analysis.profit_factor)
        assert analysis.current_avg_risk_reward == 1
        assert analysis.kelly_criterion.advice == INSUFFICIENT_DATA_ADVICE
        assert len(analysis.recommendations) == 2
        assert analysis.recommendations[0].startswith("Your win rate exceeds 60%")
        assert analysis.recommendations[1].startswith("Exceptional profit factor")

    def test_low_win_rate_and_low_profit_factor(self, risk_calculator):
        analysis = risk_calculator.analyse(make_trades([10, -20, -20, -20]))
        assert analysis.recommendations[0].startswith("Your win rate is below 40%")
        assert analysis.recommendations[1].startswith("Your profit factor is low")

    def test_long_recovery(self, risk_calculator):
        analysis = risk_calculator.analyse(make_trades([100] + [-1] * 21))
        assert analysis.drawdown_metrics.recovery_trades == 21
        assert any(r.startswith("Recovery is taking 21 trades") for r in analysis.recommendations)

    def test_breakeven_counts_in_denominator(self, risk_calculator):
        analysis = risk_calculator.analyse(make_trades([100, -50, 0, 0]))
        assert analysis.current_win_rate == 0.25

    def test_to_dict_round_trip_keys(self, risk_calculator):
        d = risk_calculator.analyse(make_trades([100, -50])).to_dict()
        assert d["kelly_criterion"]["position_size_guide"][0]["account_size"] == 1000
        assert "drawdown_metrics" in d
