"""
Analysis windows.

A window is an inclusive date range [start, end]. The analysis window ends
today and spans whole weeks; the comparison window is the equally long span
immediately before it.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional


@dataclass(frozen=True)
class AnalysisWindow:
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def previous(self) -> "AnalysisWindow":
        """The window of equal length ending the day before this one starts."""
        end = self.start - timedelta(days=1)
        return AnalysisWindow(start=end - timedelta(days=self.days - 1), end=end)


def window_ending_now(weeks: int, today: Optional[date] = None) -> AnalysisWindow:
    """Window covering the last `weeks` whole weeks, today included."""
    if weeks < 1:
        raise ValueError("weeks must be >= 1")
    end = today or date.today()
    return AnalysisWindow(start=end - timedelta(days=weeks * 7 - 1), end=end)
