"""Progress record and aggregate types."""

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass
class ProgressRecord:
    """A learner's progress on one course. All zero until first opened."""

    time_spent_s: int = 0
    percent_complete: float = 0.0
    last_position_s: int = 0
    updated_at: datetime | None = None

    def copy(self) -> "ProgressRecord":
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "timeSpentS": self.time_spent_s,
            "percentComplete": round(self.percent_complete, 1),
            "lastPositionS": self.last_position_s,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_row(cls, row) -> "ProgressRecord":
        return cls(
            time_spent_s=row["time_spent_s"],
            percent_complete=row["percent_complete"],
            last_position_s=row["last_position_s"],
            updated_at=row["updated_at"],
        )


@dataclass(frozen=True)
class ProgressSummary:
    """Aggregate over a set of courses.

    percent_complete is the raw value; to_dict() rounds it to one decimal.
    """

    percent_complete: float
    time_spent_s: int
    total_duration_s: int

    def to_dict(self) -> dict:
        return {
            "percentComplete": round(self.percent_complete, 1),
            "timeSpentS": self.time_spent_s,
            "totalDurationS": self.total_duration_s,
        }


EMPTY_SUMMARY = ProgressSummary(percent_complete=0.0, time_spent_s=0, total_duration_s=0)
