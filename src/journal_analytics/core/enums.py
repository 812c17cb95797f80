"""Enumerations used across the analytics engine."""

from enum import Enum


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class TradeOutcome(str, Enum):
    """Win / loss / break-even classification."""

    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class HabitType(str, Enum):
    GOOD = "good"
    BAD = "bad"


class LookbackWindow(str, Enum):
    """Relative date range ending at the injected "now"."""

    DAYS_7 = "7d"
    DAYS_30 = "30d"
    DAYS_90 = "90d"
    YEAR_TO_DATE = "ytd"
    ALL = "all"


class ReportPeriod(str, Enum):
    """Calendar bucket used by periodic reports."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecommendationType(str, Enum):
    STRENGTH = "strength"
    WARNING = "warning"
    TIP = "tip"
