# growatt_monitor/services/notifiers/healthchecks.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

import requests

from growatt_monitor.config import HealthchecksConfig


class HealthchecksNotifier:
    """Liveness pings for the poller itself (Healthchecks.io style URLs)."""

    def __init__(self, cfg: HealthchecksConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self._base_url = (cfg.ping_url or "").rstrip("/")
        self._enabled = bool(cfg.enabled and self._base_url)

    # ------------------------------------------------------------------
    def _hit(self, suffix: str = "", message: str = "") -> bool:
        if not self._enabled:
            self.log.debug("[Healthchecks] Disabled; skipping ping %s", suffix or "/")
            return False

        url = f"{self._base_url}{suffix}"
        params = {"msg": message[:200]} if message else None

        try:
            resp = self.session.get(url, params=params, timeout=10)
        except requests.RequestException as exc:
            self.log.warning("[Healthchecks] Ping failed: %s", exc)
            return False

        if resp.status_code != 200:
            self.log.warning("[Healthchecks] Ping %s returned HTTP %s", suffix or "/", resp.status_code)
            return False

        self.log.debug("[Healthchecks] Ping sent to %s", suffix or "/")
        return True

    # ------------------------------------------------------------------
    def ping_success(self, message: str = "") -> bool:
        return self._hit("", message)

    def ping_failure(self, message: str = "") -> bool:
        return self._hit("/fail", message)

    # ------------------------------------------------------------------
    def send_test(self) -> bool:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return self.ping_success(f"Test ping from Growatt monitor at {timestamp}")
