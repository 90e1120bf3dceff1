from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from growatt_monitor.config import GrowattConfig
from growatt_monitor.models.status import StatusSnapshot


class GrowattClient:
    """Minimal Growatt ShineServer web API wrapper with resilient parsing.

    Each ``fetch_status`` call logs in, reads the storage status of one
    device and logs out again. Any failure is logged and reported as ``None``
    so the caller can skip the cycle.
    """

    SERVER_DEFAULT = "https://server.growatt.com"

    def __init__(self, cfg: GrowattConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.base_url = (cfg.server or self.SERVER_DEFAULT).rstrip("/")

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.username and self.cfg.password)

    # ------------------------------------------------------------------
    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _post(
        self,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        url = self._build_url(path)
        try:
            resp = self.session.post(url, data=data or {}, params=params, timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            self.log.warning("Growatt request failed for %s: %s", path, exc)
            return None

        if resp.status_code != 200:
            self.log.warning("Growatt %s returned HTTP %s", path, resp.status_code)
            return None

        try:
            return resp.json()
        except ValueError:
            self.log.warning("Growatt %s returned non-JSON payload", path)
            return None

    # ------------------------------------------------------------------
    def login(self) -> bool:
        payload = self._post(
            "/login",
            data={
                "account": self.cfg.username,
                "password": self.cfg.password,
                "validateCode": "",
                "isReadPact": 0,
            },
        )
        if not isinstance(payload, dict):
            return False
        if str(payload.get("result")) != "1":
            self.log.warning(
                "Growatt login rejected: %s",
                payload.get("msg") or payload.get("error") or payload.get("result"),
            )
            return False
        return True

    def logout(self) -> None:
        try:
            self.session.get(self._build_url("/logout"), timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            self.log.debug("Growatt logout failed: %s", exc)

    # ------------------------------------------------------------------
    def resolve_plant_id(self) -> Optional[str]:
        if self.cfg.plant_id:
            return self.cfg.plant_id

        plants = self._post("/index/getPlantListTitle")
        if not isinstance(plants, list) or not plants:
            self.log.warning("Growatt account has no plants")
            return None
        first = plants[0]
        if not isinstance(first, dict) or first.get("id") in (None, ""):
            self.log.warning("Growatt plant list entry without id: %s", first)
            return None
        return str(first["id"])

    def resolve_device_sn(self, plant_id: str) -> Optional[str]:
        if self.cfg.device_sn:
            return self.cfg.device_sn

        payload = self._post(
            "/panel/getDevicesByPlantList",
            data={"plantId": plant_id, "currPage": 1},
        )
        if not isinstance(payload, dict):
            return None
        obj = payload.get("obj")
        devices = (obj.get("datas") or []) if isinstance(obj, dict) else []
        for entry in devices:
            if isinstance(entry, dict) and entry.get("sn"):
                return str(entry["sn"])
        self.log.warning("Growatt plant %s has no devices", plant_id)
        return None

    def fetch_raw_status(self, plant_id: str, device_sn: str) -> Optional[Dict[str, Any]]:
        payload = self._post(
            "/panel/storage/getStoragesStatusData",
            data={"storageSn": device_sn},
            params={"plantId": plant_id},
        )
        if not isinstance(payload, dict):
            return None
        if str(payload.get("result")) != "1":
            self.log.warning("Growatt status request for %s reported result=%s", device_sn, payload.get("result"))
            return None
        obj = payload.get("obj")
        if not isinstance(obj, dict):
            self.log.warning("Growatt status for %s carried no data object", device_sn)
            return None
        return obj

    # ------------------------------------------------------------------
    def fetch_status(self) -> Optional[StatusSnapshot]:
        if not self.enabled:
            self.log.warning("Growatt credentials not configured; cannot fetch status")
            return None

        if not self.login():
            return None
        try:
            plant_id = self.resolve_plant_id()
            if plant_id is None:
                return None
            device_sn = self.resolve_device_sn(plant_id)
            if device_sn is None:
                return None
            raw = self.fetch_raw_status(plant_id, device_sn)
            if raw is None:
                return None
        finally:
            self.logout()

        snapshot = StatusSnapshot.from_raw(raw, plant_id=plant_id, device_sn=device_sn)
        self.log.debug(
            "Growatt %s: soc=%s grid_on=%s vIn=%s fIn=%s load=%s pv=%s vBat=%s",
            device_sn,
            snapshot.soc_percent,
            snapshot.grid_on,
            snapshot.input_voltage,
            snapshot.input_frequency,
            snapshot.load_watts,
            snapshot.pv_watts,
            snapshot.battery_volts,
        )
        return snapshot
