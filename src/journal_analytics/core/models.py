"""Core input models used across the analytics engine.

These are the canonical shapes of the records supplied by the
persistence layer.  Every optional field has a default, and loose
inputs (``None`` numbers, a bare string where a tag list is expected,
numeric ids) are coerced here so downstream formulas never re-check
shapes.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .enums import Direction, HabitType, TradeOutcome

_NUMERIC_FIELDS = (
    "entry_price",
    "exit_price",
    "stop_loss",
    "take_profit",
    "size",
    "pnl",
    "duration_minutes",
)

_TAG_FIELDS = (
    "psychology_factors",
    "good_habits",
    "executed_rules",
    "smc_market_structure",
    "ict_market_structure_shift",
    "wyckoff_phases",
    "support_resistance_used",
)

# Concept tag lists counted by the confluence score
CONCEPT_FIELDS = (
    "smc_market_structure",
    "ict_market_structure_shift",
    "wyckoff_phases",
    "support_resistance_used",
    "psychology_factors",
)


def parse_trade_date(value: Any) -> dt.date:
    """Parse a trade date from a date, datetime or ISO-8601 string."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return dt.date.fromisoformat(text[:10])
    raise ValueError(f"unsupported date value: {value!r}")


def outcome_from_pnl(pnl: float) -> TradeOutcome:
    """Classify a trade by the sign of its P&L."""
    if pnl > 0:
        return TradeOutcome.WIN
    if pnl < 0:
        return TradeOutcome.LOSS
    return TradeOutcome.BREAKEVEN


# ---------------------------------------------------------------------------
# Trade record
# ---------------------------------------------------------------------------

class TradeRecord(BaseModel):
    """One closed trade as supplied by the journal.

    ``outcome`` is kept as supplied (or derived from ``pnl`` when
    missing).  All statistics classify on the sign of ``pnl`` instead,
    since some sources set ``outcome`` independently.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    # Identity
    id: str = ""
    date: dt.date
    instrument: str = ""
    direction: Direction | None = None

    # Prices and size
    entry_price: float = 0.0
    exit_price: float = 0.0
    stop_loss: float = 0.0
    take_profit: float = 0.0
    size: float = 0.0

    # Result (pnl must precede outcome: outcome falls back on it)
    pnl: float = 0.0
    outcome: TradeOutcome = Field(default=None, validate_default=True)
    duration_minutes: float = 0.0

    # Timing context
    trade_start_time: str | None = None
    trade_session: str | None = None

    # Playbook linkage
    setup_name: str | None = None
    playbook_strategy_id: str | None = None
    executed_rules: list[str] = Field(default_factory=list)

    # Psychology
    psychology_factors: list[str] = Field(default_factory=list)
    good_habits: list[str] = Field(default_factory=list)

    # Concept tags
    smc_market_structure: list[str] = Field(default_factory=list)
    ict_market_structure_shift: list[str] = Field(default_factory=list)
    wyckoff_phases: list[str] = Field(default_factory=list)
    support_resistance_used: list[str] = Field(default_factory=list)

    # ------------------------------------------------------------------ #
    # Coercion                                                             #
    # ------------------------------------------------------------------ #

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> dt.date:
        return parse_trade_date(v)

    @field_validator("id", "instrument", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator(
        "setup_name", "playbook_strategy_id", "trade_start_time", "trade_session",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _number(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0.0
        return v

    @field_validator(*_TAG_FIELDS, mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v.strip()] if v.strip() else []
        if isinstance(v, (list, tuple, set, frozenset)):
            return [str(item).strip() for item in v if item is not None and str(item).strip()]
        return [str(v)]

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, v: Any) -> Direction | None:
        if isinstance(v, Direction):
            return v
        if isinstance(v, str) and v.strip().lower() in ("long", "short"):
            return Direction(v.strip().lower())
        return None

    @field_validator("outcome", mode="before")
    @classmethod
    def _outcome(cls, v: Any, info: ValidationInfo) -> TradeOutcome:
        if isinstance(v, TradeOutcome):
            return v
        if isinstance(v, str) and v.strip().lower() in ("win", "loss", "breakeven"):
            return TradeOutcome(v.strip().lower())
        return outcome_from_pnl(info.data.get("pnl", 0.0))

    # ------------------------------------------------------------------ #
    # Derived views                                                        #
    # ------------------------------------------------------------------ #

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.pnl < 0

    @property
    def pnl_outcome(self) -> TradeOutcome:
        """Outcome derived from the sign of ``pnl``."""
        return outcome_from_pnl(self.pnl)

    @property
    def psychology_tags(self) -> list[str]:
        """Psychology factors and good habits as one tag list."""
        return [*self.psychology_factors, *self.good_habits]

    @property
    def concept_count(self) -> int:
        return sum(len(getattr(self, name)) for name in CONCEPT_FIELDS)


# ---------------------------------------------------------------------------
# Playbook strategies
# ---------------------------------------------------------------------------

class StrategyRule(BaseModel):
    """One checklist item of a playbook strategy."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    text: str = ""
    phase: str = ""
    category: str | None = None
    required: bool = False

    @field_validator("id", "text", "phase", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)


class Strategy(BaseModel):
    """A user-defined playbook strategy with an ordered rule list."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    rules: list[StrategyRule] = Field(default_factory=list)

    @field_validator("id", "name", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("rules", mode="before")
    @classmethod
    def _rules(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def rule_ids(self) -> list[str]:
        return [r.id for r in self.rules]


# ---------------------------------------------------------------------------
# Habit reference catalog
# ---------------------------------------------------------------------------

class HabitDefinition(BaseModel):
    """A named psychology habit and whether it helps or hurts."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: HabitType


_DEFAULT_BAD_HABITS = (
    ("bad_distracted", "Distracted"),
    ("bad_emotional", "Emotional/Impulsive"),
    ("bad_revenge", "Revenge Trading"),
    ("bad_fomo", "FOMO (Fear of Missing Out)"),
    ("bad_overtrading", "Overtrading"),
    ("bad_ignored_plan", "Ignored Trading Plan"),
    ("bad_moved_sl", "Moved Stop Loss"),
    ("bad_oversized", "Position Too Large"),
    ("bad_tired", "Fatigued/Tired"),
    ("bad_stressed", "Stressed/Anxious"),
)

_DEFAULT_GOOD_HABITS = (
    ("good_well_rested", "Well Rested"),
    ("good_focused", "Focused & Alert"),
    ("good_followed_plan", "Followed Trading Plan"),
    ("good_patient", "Patient Entry"),
    ("good_disciplined", "Disciplined Risk Management"),
    ("good_calm", "Calm & Composed"),
    ("good_proper_sizing", "Proper Position Sizing"),
    ("good_stuck_to_sl", "Stuck to Stop Loss"),
    ("good_took_profit", "Took Profit at Target"),
    ("good_pre_market", "Did Pre-Market Analysis"),
    ("good_journal_review", "Reviewed Journal Before Trade"),
    ("good_no_distractions", "Eliminated Distractions"),
)


class HabitCatalog(BaseModel):
    """Reference catalog classifying psychology tags as good or bad.

    Passed explicitly to the psychology analyser; tags missing from the
    catalog are treated as bad habits and labelled by their id.
    """

    model_config = ConfigDict(frozen=True)

    habits: list[HabitDefinition] = Field(default_factory=list)

    @classmethod
    def default(cls) -> HabitCatalog:
        """Build the stock good/bad habit catalog."""
        habits = [
            HabitDefinition(id=hid, name=name, type=HabitType.GOOD)
            for hid, name in _DEFAULT_GOOD_HABITS
        ] + [
            HabitDefinition(id=hid, name=name, type=HabitType.BAD)
            for hid, name in _DEFAULT_BAD_HABITS
        ]
        return cls(habits=habits)

    def get(self, habit_id: str) -> HabitDefinition | None:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        return None

    def label(self, habit_id: str) -> str:
        habit = self.get(habit_id)
        return habit.name if habit else habit_id

    def type_of(self, habit_id: str) -> HabitType:
        habit = self.get(habit_id)
        return habit.type if habit else HabitType.BAD
