"""Trade journal analytics: pure computations over closed trades.

Turns a historical list of trade records into the statistics used to
coach the trader.

Key components
--------------
**Inputs**

normalize_trades        Validate and default raw journal rows
normalize_strategies    Same policy for the playbook catalog

**Performance**

summarize_trades        Totals and win rate
build_equity_curve      Cumulative P&L per trade in date order
AdvancedAnalyser        Sharpe / Sortino / Calmar, streaks, time buckets
generate_insights       Coaching lines from the advanced figures

**Sizing & behaviour**

KellyRiskCalculator     Half-Kelly risk per trade, drawdown tracking
SetupAnalyser           Per-setup performance and personal edge
PsychologyAnalyser      Mindset tags vs outcomes
ComplianceScorer        Playbook rule adherence vs outcomes
PatternRecogniser       Instrument / hour / weekday / session slices

**Reporting**

PeriodReporter          Look-back windows and calendar buckets
JournalAnalytics        Runs everything over one normalized list
"""

from .advanced import AdvancedAnalyser, AdvancedAnalyticsResult, generate_insights
from .aggregator import EquityPoint, TradeSummary, build_equity_curve, sort_by_date, summarize_trades
from .compliance import (
    ComplianceAnalysis,
    ComplianceBucket,
    ComplianceScorer,
    RuleMissStat,
    TradeComplianceScore,
)
from .decision_table import DecisionTable, Rule
from .engine import AnalyticsReport, JournalAnalytics
from .normalizer import (
    NormalizationResult,
    normalize_strategies,
    normalize_trades,
    normalize_trades_with_report,
)
from .patterns import (
    HeatmapCell,
    PatternGroup,
    PatternRecogniser,
    PatternRecognitionResult,
    PatternStat,
    SmartRecommendation,
    StreakSummary,
)
from .periods import PeriodBucket, PeriodReport, PeriodReporter
from .psychology import PsychFactorStat, PsychologyAnalyser, PsychologyCorrelationResult
from .risk import (
    DrawdownMetrics,
    KellyCriterionResult,
    KellyRiskCalculator,
    PositionSizeGuide,
    RiskAnalysis,
    calculate_kelly_criterion,
)
from .setups import SetupAnalyser, SetupAnalysisResult, SetupPerformance

__all__ = [
    "AdvancedAnalyser",
    "AdvancedAnalyticsResult",
    "AnalyticsReport",
    "ComplianceAnalysis",
    "ComplianceBucket",
    "ComplianceScorer",
    "DecisionTable",
    "DrawdownMetrics",
    "EquityPoint",
    "HeatmapCell",
    "JournalAnalytics",
    "KellyCriterionResult",
    "KellyRiskCalculator",
    "NormalizationResult",
    "PatternGroup",
    "PatternRecogniser",
    "PatternRecognitionResult",
    "PatternStat",
    "PeriodBucket",
    "PeriodReport",
    "PeriodReporter",
    "PositionSizeGuide",
    "PsychFactorStat",
    "PsychologyAnalyser",
    "PsychologyCorrelationResult",
    "RiskAnalysis",
    "Rule",
    "RuleMissStat",
    "SetupAnalyser",
    "SetupAnalysisResult",
    "SetupPerformance",
    "SmartRecommendation",
    "StreakSummary",
    "TradeComplianceScore",
    "TradeSummary",
    "build_equity_curve",
    "calculate_kelly_criterion",
    "generate_insights",
    "normalize_strategies",
    "normalize_trades",
    "normalize_trades_with_report",
    "sort_by_date",
    "summarize_trades",
]
