# growatt_monitor/services/grid_detector.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from growatt_monitor.models.status import StatusSnapshot
from growatt_monitor.services.message_formatter import format_first_check, format_grid_change


@dataclass
class GridDecision:
    notification: Optional[str]
    new_previous: bool


def detect_grid_transition(previous: Optional[bool], snapshot: StatusSnapshot) -> GridDecision:
    """
    Decide whether the grid state warrants a notification.

    - previous unknown (first cycle ever) -> "first check" message
    - previous differs from the current reading -> "grid changed" message
    - otherwise -> nothing to say
    """
    current = snapshot.grid_on

    if previous is None:
        return GridDecision(notification=format_first_check(snapshot), new_previous=current)

    if previous != current:
        return GridDecision(notification=format_grid_change(snapshot), new_previous=current)

    return GridDecision(notification=None, new_previous=previous)
