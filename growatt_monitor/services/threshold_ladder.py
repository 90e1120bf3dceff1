# growatt_monitor/services/threshold_ladder.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple

from growatt_monitor.models.status import StatusSnapshot
from growatt_monitor.services.message_formatter import format_battery_low

# A fired rung re-arms only once the SOC climbs this many points above it.
REARM_BUFFER = 3


@dataclass
class LadderDecision:
    notifications: List[str] = field(default_factory=list)
    sent: Dict[int, bool] = field(default_factory=dict)
    fired: List[int] = field(default_factory=list)
    rearmed: List[int] = field(default_factory=list)


def normalize_ladder(thresholds: Iterable[int]) -> Tuple[int, ...]:
    """Distinct trigger points, highest first."""
    return tuple(sorted({int(t) for t in thresholds}, reverse=True))


def evaluate_thresholds(
    thresholds: Iterable[int],
    sent: Mapping[int, bool],
    snapshot: StatusSnapshot,
) -> LadderDecision:
    """
    Walk the ladder from the highest rung down.

    A rung fires when the SOC is at or below it and it has not fired since its
    last re-arm. A fired rung re-arms when the SOC rises above
    ``threshold + REARM_BUFFER``. Several rungs can fire in the same pass when
    the SOC dropped past them between polls.

    An unknown SOC leaves the map untouched. Otherwise the returned map holds
    exactly the rungs of the current ladder; keys from an older ladder are
    dropped.
    """
    ladder = normalize_ladder(thresholds)
    soc = snapshot.soc_percent

    if not snapshot.soc_known:
        return LadderDecision(sent=dict(sent))

    decision = LadderDecision()
    for threshold in ladder:
        active = bool(sent.get(threshold, False))

        if not active and soc <= threshold:
            active = True
            decision.fired.append(threshold)
            decision.notifications.append(format_battery_low(snapshot, threshold))
        elif active and soc > threshold + REARM_BUFFER:
            active = False
            decision.rearmed.append(threshold)

        decision.sent[threshold] = active

    return decision
