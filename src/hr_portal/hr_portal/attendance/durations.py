"""Duration arithmetic applied when a session is closed or corrected.

Deltas are taken in milliseconds and rounded half up to whole seconds, so
worked time is never systematically truncated.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..common.datetime_utils import rounded_seconds
from .model import BreakInterval


def total_break_seconds(breaks: Iterable[BreakInterval]) -> int:
    """Sum of rounded closed-break lengths; open breaks contribute nothing."""
    return sum(
        rounded_seconds(b.break_in_time, b.break_out_time)
        for b in breaks
        if b.break_out_time is not None
    )


def net_duration_seconds(check_in: datetime, check_out: datetime, break_seconds: int) -> int:
    return rounded_seconds(check_in, check_out) - int(break_seconds)
