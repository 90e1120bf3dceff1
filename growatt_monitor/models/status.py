# growatt_monitor/models/status.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

# Grid is considered present only when both drive signals agree.
GRID_MIN_VOLTAGE = 10.0
GRID_MIN_FREQUENCY = 40.0

UNKNOWN_SOC = -1


def _number(raw: Any, default: float = 0.0) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _soc(raw: Any) -> int:
    if raw is None or raw == "":
        return UNKNOWN_SOC
    try:
        return int(round(float(raw)))
    except (TypeError, ValueError):
        return UNKNOWN_SOC


def grid_is_on(input_voltage: float, input_frequency: float) -> bool:
    return input_voltage > GRID_MIN_VOLTAGE and input_frequency > GRID_MIN_FREQUENCY


@dataclass
class StatusSnapshot:
    soc_percent: int              # -1 when the battery reading is unavailable
    grid_on: bool
    input_voltage: float = 0.0
    input_frequency: float = 0.0
    load_watts: float = 0.0
    pv_watts: float = 0.0
    battery_volts: float = 0.0
    plant_id: str | None = None
    device_sn: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def soc_known(self) -> bool:
        return self.soc_percent >= 0

    @classmethod
    def from_raw(
        cls,
        raw: Mapping[str, Any] | None,
        *,
        plant_id: str | None = None,
        device_sn: str | None = None,
        timestamp: datetime | None = None,
    ) -> "StatusSnapshot":
        """Normalize a Growatt storage status payload.

        Missing or unparseable fields fall back to 0 (-1 for the state of
        charge); they are never treated as errors.
        """
        raw = raw or {}
        v_in = _number(raw.get("vAcInput"))
        f_in = _number(raw.get("fAcInput"))
        return cls(
            soc_percent=_soc(raw.get("capacity")),
            grid_on=grid_is_on(v_in, f_in),
            input_voltage=v_in,
            input_frequency=f_in,
            load_watts=_number(raw.get("loadPower")),
            pv_watts=_number(raw.get("panelPower")),
            battery_volts=_number(raw.get("vBat")),
            plant_id=plant_id,
            device_sn=device_sn,
            timestamp=timestamp or datetime.now(),
        )
