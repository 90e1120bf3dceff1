# growatt_monitor/services/simulation_provider.py

from __future__ import annotations

from typing import Any, Dict, Optional

from growatt_monitor.models.status import StatusSnapshot

# config key -> Growatt status field
_FIELD_MAP = {
    "soc": "capacity",
    "v_ac_input": "vAcInput",
    "f_ac_input": "fAcInput",
    "load_power": "loadPower",
    "panel_power": "panelPower",
    "v_bat": "vBat",
}


class SimulationStatusProvider:
    """
    Status provider backed by the [simulation] / [simulation:<name>] config
    sections. Scenario values win over root values; anything missing is
    simply absent from the payload, as with a sparse cloud response.
    """

    def __init__(self, scenario: str | None, cfg: Dict[str, Any] | None, log):
        self.scenario = scenario
        self.cfg_root = cfg or {}
        self.scenario_cfg = self.cfg_root.get(scenario, {}) if scenario else {}
        self.log = log
        if scenario and not self.scenario_cfg:
            self.log.warning("Simulation scenario '%s' not found in config; using root values", scenario)

    def _get(self, key: str) -> Optional[str]:
        if key in self.scenario_cfg:
            return self.scenario_cfg[key]
        value = self.cfg_root.get(key)
        if isinstance(value, str):
            return value
        return None

    def fetch_status(self) -> Optional[StatusSnapshot]:
        if (self._get("fail") or "").strip().lower() == "true":
            self.log.warning("[SIM] Simulated status fetch failure (scenario=%s)", self.scenario)
            return None

        raw: Dict[str, str] = {}
        for key, field_name in _FIELD_MAP.items():
            value = self._get(key)
            if value is not None and value.strip():
                raw[field_name] = value.strip()

        self.log.debug("[SIM] scenario=%s raw=%s", self.scenario, raw)
        return StatusSnapshot.from_raw(raw, plant_id="SIM", device_sn=f"SIM-{self.scenario or 'default'}")
