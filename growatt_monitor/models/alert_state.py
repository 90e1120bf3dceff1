# growatt_monitor/models/alert_state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class AlertState:
    """What has already been communicated, persisted between cycles.

    ``last_grid_on`` is ``None`` until the very first cycle has run.
    ``sent`` maps a threshold value (not a ladder index) to whether the
    low-battery alert for that rung is currently active.
    """

    last_grid_on: Optional[bool] = None
    sent: Dict[int, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_grid_on": self.last_grid_on,
            "sent": {str(k): bool(v) for k, v in sorted(self.sent.items(), reverse=True)},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AlertState":
        if not isinstance(data, Mapping):
            raise ValueError(f"alert state must be a mapping, got {type(data).__name__}")

        last = data.get("last_grid_on")
        if last is not None and not isinstance(last, bool):
            raise ValueError(f"invalid last_grid_on value: {last!r}")

        raw_sent = data.get("sent") or {}
        if not isinstance(raw_sent, Mapping):
            raise ValueError("alert state 'sent' must be a mapping")

        sent: Dict[int, bool] = {}
        for key, value in raw_sent.items():
            try:
                threshold = int(key)
            except (TypeError, ValueError):
                raise ValueError(f"invalid threshold key in alert state: {key!r}") from None
            sent[threshold] = bool(value)

        return cls(last_grid_on=last, sent=sent)
