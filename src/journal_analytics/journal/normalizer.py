"""Record normalizer: the single validation boundary.

Turns loosely-typed rows from the persistence layer into frozen
``TradeRecord`` / ``Strategy`` models.  A malformed row is skipped and
counted; one bad record never aborts the batch and this module never
raises to its caller.

Usage::

    trades = normalize_trades(rows)          # list[TradeRecord]
    result = normalize_trades_with_report(rows)
    print(result.skipped)                    # rows that were dropped
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.errors import RecordValidationError
from ..core.models import Strategy, TradeRecord

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class NormalizationResult:
    """Normalized records plus the reasons rows were rejected."""

    records: list = field(default_factory=list)
    errors: list[RecordValidationError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


def _coerce(model: type[M], index: int, row: Any) -> M:
    if isinstance(row, model):
        return row
    if isinstance(row, BaseModel):
        row = row.model_dump()
    if not isinstance(row, Mapping):
        raise RecordValidationError(index, f"expected a mapping, got {type(row).__name__}")
    try:
        return model.model_validate(dict(row))
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()
        )
        raise RecordValidationError(index, f"invalid field(s): {fields}") from exc


def _normalize(model: type[M], rows: Iterable[Any] | None) -> NormalizationResult:
    result = NormalizationResult()
    if rows is None:
        return result
    try:
        batch = iter(rows)
    except TypeError:
        logger.warning(
            "Expected a batch of %s records, got %s; treating as empty",
            model.__name__,
            type(rows).__name__,
        )
        return result
    for index, row in enumerate(batch):
        try:
            result.records.append(_coerce(model, index, row))
        except RecordValidationError as exc:
            result.errors.append(exc)

    if result.errors:
        logger.warning(
            "Skipped %d malformed %s record(s) of %d; first: %s",
            result.skipped,
            model.__name__,
            result.skipped + len(result.records),
            result.errors[0],
        )
    return result


def normalize_trades_with_report(rows: Iterable[Any] | None) -> NormalizationResult:
    """Normalize trade rows, keeping the rejection details."""
    return _normalize(TradeRecord, rows)


def normalize_trades(rows: Iterable[Any] | None) -> list[TradeRecord]:
    """Normalize trade rows, silently dropping malformed ones.

    Accepts mappings or ``TradeRecord`` instances; ``None`` is treated
    as an empty batch.
    """
    return _normalize(TradeRecord, rows).records


def normalize_strategies(rows: Iterable[Any] | None) -> list[Strategy]:
    """Normalize the playbook strategy catalog with the same policy."""
    return _normalize(Strategy, rows).records
