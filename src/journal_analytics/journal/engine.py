"""Analytics engine facade.

Normalizes the raw journal rows once, applies the optional look-back
window, puts the trades in date order (unless disabled in settings)
and runs every analyser over the same list.

Usage::

    engine = JournalAnalytics.from_settings(load_settings("configs/default.toml"))
    report = engine.run(rows, strategies=playbook, window="90d")
    print(report.summary.win_rate, report.risk.kelly_criterion.advice)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..core.clock import IClock, WallClock
from ..core.config import AnalyticsSettings
from ..core.enums import LookbackWindow, ReportPeriod
from ..core.models import HabitCatalog
from ..observability import get_logger, run_scope, setup_logging_from_settings
from .advanced import AdvancedAnalyser, AdvancedAnalyticsResult, generate_insights
from .aggregator import EquityPoint, TradeSummary, build_equity_curve, sort_by_date, summarize_trades
from .compliance import ComplianceAnalysis, ComplianceScorer
from .normalizer import normalize_strategies, normalize_trades_with_report
from .patterns import PatternRecogniser, PatternRecognitionResult
from .periods import PeriodReport, PeriodReporter
from .psychology import PsychologyAnalyser, PsychologyCorrelationResult
from .risk import KellyRiskCalculator, RiskAnalysis
from .setups import SetupAnalyser, SetupAnalysisResult

log = get_logger(__name__)


@dataclass
class AnalyticsReport:
    """Every analysis over one normalized trade list."""

    run_id: str
    window: LookbackWindow
    trade_count: int = 0
    skipped_records: int = 0
    summary: TradeSummary = field(default_factory=TradeSummary)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    advanced: AdvancedAnalyticsResult = field(default_factory=AdvancedAnalyticsResult)
    insights: list[str] = field(default_factory=list)
    risk: RiskAnalysis = field(default_factory=RiskAnalysis)
    setups: SetupAnalysisResult = field(default_factory=SetupAnalysisResult)
    psychology: PsychologyCorrelationResult = field(default_factory=PsychologyCorrelationResult)
    compliance: ComplianceAnalysis = field(default_factory=ComplianceAnalysis)
    patterns: PatternRecognitionResult = field(default_factory=PatternRecognitionResult)
    periods: PeriodReport = field(default_factory=lambda: PeriodReport(period=ReportPeriod.MONTHLY))

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "window": self.window.value,
            "trade_count": self.trade_count,
            "skipped_records": self.skipped_records,
            "summary": self.summary.to_dict(),
            "equity_curve": [p.to_dict() for p in self.equity_curve],
            "advanced": self.advanced.to_dict(),
            "insights": list(self.insights),
            "risk": self.risk.to_dict(),
            "setups": self.setups.to_dict(),
            "psychology": self.psychology.to_dict(),
            "compliance": self.compliance.to_dict(),
            "patterns": self.patterns.to_dict(),
            "periods": self.periods.to_dict(),
        }


class JournalAnalytics:
    """Run the full analytics suite over a journal.

    Parameters
    ----------
    settings : AnalyticsSettings, optional
        Thresholds and switches; defaults apply when omitted.
    habit_catalog : HabitCatalog, optional
        Good/bad habit reference for the psychology analysis.  The stock
        catalog is used when omitted.
    clock : IClock, optional
        Source of "now" for look-back windows.
    """

    def __init__(
        self,
        settings: AnalyticsSettings | None = None,
        habit_catalog: HabitCatalog | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._settings = settings or AnalyticsSettings()
        s = self._settings

        self._advanced = AdvancedAnalyser(
            risk_free_rate=s.advanced.risk_free_rate,
            periods_per_year=s.advanced.periods_per_year,
        )
        self._risk = KellyRiskCalculator(**s.kelly.model_dump())
        self._setups = SetupAnalyser(**s.setups.model_dump())
        self._psychology = PsychologyAnalyser(
            habit_catalog or HabitCatalog.default(),
            **s.psychology.model_dump(),
        )
        self._compliance = ComplianceScorer(**s.compliance.model_dump())
        self._patterns = PatternRecogniser(**s.patterns.model_dump())
        self._periods = PeriodReporter(clock or WallClock())

    @classmethod
    def from_settings(
        cls,
        settings: AnalyticsSettings,
        *,
        habit_catalog: HabitCatalog | None = None,
        clock: IClock | None = None,
        configure_logging: bool = True,
    ) -> JournalAnalytics:
        """Build an engine from loaded settings.

        Also applies the ``[observability]`` logging section unless
        ``configure_logging`` is false.
        """
        if configure_logging:
            setup_logging_from_settings(settings)
        return cls(settings=settings, habit_catalog=habit_catalog, clock=clock)

    @property
    def settings(self) -> AnalyticsSettings:
        return self._settings

    def run(
        self,
        raw_trades: Iterable[Any] | None,
        strategies: Iterable[Any] | None = None,
        window: LookbackWindow | str = LookbackWindow.ALL,
        *,
        period: ReportPeriod | str = ReportPeriod.MONTHLY,
    ) -> AnalyticsReport:
        """Normalize the inputs and evaluate every analysis.

        Malformed rows are dropped and counted in ``skipped_records``.

        Raises:
            ValueError: ``window`` or ``period`` is not a known value.
        """
        window = LookbackWindow(window)
        period = ReportPeriod(period)
        with run_scope() as run_id:
            return self._run(run_id, raw_trades, strategies, window, period)

    def _run(
        self,
        run_id: str,
        raw_trades: Iterable[Any] | None,
        strategies: Iterable[Any] | None,
        window: LookbackWindow,
        period: ReportPeriod,
    ) -> AnalyticsReport:
        normalized = normalize_trades_with_report(raw_trades)
        playbook = normalize_strategies(strategies)

        trades = self._periods.filter_window(normalized.records, window)
        if self._settings.sort_chronologically:
            trades = sort_by_date(trades)

        advanced = self._advanced.analyse(trades)
        report = AnalyticsReport(
            run_id=run_id,
            window=window,
            trade_count=len(trades),
            skipped_records=normalized.skipped,
            summary=summarize_trades(trades),
            equity_curve=build_equity_curve(trades),
            advanced=advanced,
            insights=generate_insights(advanced) if trades else [],
            risk=self._risk.analyse(trades),
            setups=self._setups.analyse(trades),
            psychology=self._psychology.analyse(trades),
            compliance=self._compliance.analyse(trades, playbook),
            patterns=self._patterns.analyse(trades),
            periods=self._periods.report(trades, period),
        )

        log.info(
            "analytics_run_complete",
            trades=report.trade_count,
            skipped=report.skipped_records,
            strategies=len(playbook),
            window=window.value,
            total_pnl=report.summary.total_pnl,
        )
        return report
