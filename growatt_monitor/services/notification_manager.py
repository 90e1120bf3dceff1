# growatt_monitor/services/notification_manager.py

from __future__ import annotations

from typing import Optional

import requests

from growatt_monitor.config import HealthchecksConfig, TelegramConfig
from growatt_monitor.services.notifiers.healthchecks import HealthchecksNotifier
from growatt_monitor.services.notifiers.telegram import TelegramNotifier


class NotificationManager:
    """Coordinates outbound traffic: Telegram alerts plus liveness pings."""

    def __init__(
        self,
        telegram_cfg: TelegramConfig,
        hc_cfg: HealthchecksConfig,
        log,
        *,
        session: Optional[requests.Session] = None,
    ):
        self.log = log
        self.telegram = TelegramNotifier(telegram_cfg, log, session=session)
        self.healthchecks = HealthchecksNotifier(hc_cfg, log, session=session)

    @property
    def enabled(self) -> bool:
        return self.telegram.enabled

    # ------------------------------------------------------------------
    def send(self, text: str) -> bool:
        """Deliver one alert text; the engine's notifier contract."""
        return self.telegram.send(text)

    # ------------------------------------------------------------------
    def report_cycle(self, ok: bool, summary: str = "") -> None:
        """Tell the liveness monitor how the last cycle went."""
        if ok:
            self.healthchecks.ping_success(summary or "cycle ok")
        else:
            self.healthchecks.ping_failure(summary or "cycle aborted")

    # ------------------------------------------------------------------
    def send_test_notifications(self) -> bool:
        """Trigger manual test messages for both channels."""
        self.log.info("Sending test notification via Telegram and Healthchecks...")
        delivered = self.telegram.send_test()
        self.healthchecks.send_test()
        return delivered
