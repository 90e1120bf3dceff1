# growatt_monitor/services/notifiers/telegram.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

import requests

from growatt_monitor.config import TelegramConfig


class TelegramNotifier:
    """Minimal Telegram Bot API client with helpful logging and validation."""

    def __init__(self, cfg: TelegramConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self._enabled = bool(cfg.enabled and cfg.bot_token and cfg.chat_id)

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    def _url(self, method: str) -> str:
        return f"{self.cfg.api_base.rstrip('/')}/bot{self.cfg.bot_token}/{method}"

    def send(self, text: str) -> bool:
        if not self._enabled:
            self.log.debug("[Telegram] Disabled; skipping message: %s", text.splitlines()[0] if text else "")
            return False

        try:
            resp = self.session.post(
                self._url("sendMessage"),
                json={"chat_id": self.cfg.chat_id, "text": text},
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as exc:
            # The exception text can embed the URL, which contains the token.
            self.log.warning("[Telegram] Failed to send message: %s", type(exc).__name__)
            return False

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code != 200 or not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            self.log.warning(
                "[Telegram] sendMessage rejected (HTTP %s): %s",
                resp.status_code,
                description or "no description",
            )
            return False

        self.log.info("[Telegram] Sent notification: %s", text.splitlines()[0] if text else "")
        return True

    # ------------------------------------------------------------------
    def send_test(self) -> bool:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return self.send(f"🧪 Test message from Growatt monitor at {timestamp}")
