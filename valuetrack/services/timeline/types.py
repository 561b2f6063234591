# valuetrack/services/timeline/types.py
"""
Data types for timeline reconstruction.

These are plain values detached from the ORM: building a timeline only ever
sees ValuePoints, so it can run on any thread and be tested without a
database.

Type Hierarchy:
    ValuePoint      - One update's value, tagged with its account and id
    ChartDataPoint  - (date, value) pair emitted for charts
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from valuetrack.services.validation import safe_double_value

if TYPE_CHECKING:
    from valuetrack.models import AccountUpdate


@dataclass(frozen=True)
class ValuePoint:
    """
    An update reduced to the fields the engine needs.

    Attributes:
        account_id: Owning account
        update_id: Update primary key (tie-break after date and account)
        date: Observation timestamp
        value: Recorded value
    """
    account_id: int
    update_id: int
    date: datetime
    value: Decimal

    @classmethod
    def from_update(cls, update: AccountUpdate) -> ValuePoint:
        return cls(
            account_id=update.account_id,
            update_id=update.id,
            date=update.date,
            value=update.value,
        )

    @property
    def sort_key(self) -> tuple[datetime, int, int]:
        return (self.date, self.account_id, self.update_id)


@dataclass(frozen=True)
class ChartDataPoint:
    """A (date, value) pair ready for charting."""
    date: datetime
    value: Decimal

    @property
    def chart_value(self) -> float:
        """Value as a finite float for chart rendering."""
        return safe_double_value(self.value)
