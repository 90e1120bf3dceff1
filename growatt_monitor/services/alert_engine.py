from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from growatt_monitor.logging import CycleLogEntry, StructuredLog
from growatt_monitor.models.alert_state import AlertState
from growatt_monitor.models.status import StatusSnapshot
from growatt_monitor.services.grid_detector import detect_grid_transition
from growatt_monitor.services.threshold_ladder import evaluate_thresholds, normalize_ladder


@dataclass
class CycleResult:
    ok: bool
    aborted: bool = False
    snapshot: Optional[StatusSnapshot] = None
    notifications: List[str] = field(default_factory=list)
    sent_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0     # channel disabled in config
    saved: bool = False
    state: Optional[AlertState] = None
    error: Optional[str] = None


def decide(
    state: AlertState,
    snapshot: StatusSnapshot,
    thresholds: Iterable[int],
) -> Tuple[List[str], AlertState]:
    """Pure decision step: grid message first, then battery rungs high to low."""
    notifications: list[str] = []

    grid = detect_grid_transition(state.last_grid_on, snapshot)
    if grid.notification:
        notifications.append(grid.notification)

    ladder = evaluate_thresholds(thresholds, state.sent, snapshot)
    notifications.extend(ladder.notifications)

    return notifications, AlertState(last_grid_on=grid.new_previous, sent=ladder.sent)


class AlertEngine:
    """
    Runs one load -> fetch -> decide -> notify -> persist cycle.

    The engine is the only component doing I/O; the decision itself is the
    pure ``decide`` function above. Nothing is written back to the store until
    every decision for the cycle has been made.
    """

    def __init__(
        self,
        store,
        provider,
        notifier,
        thresholds: Iterable[int],
        log,
        *,
        structured_log: StructuredLog | None = None,
    ):
        self.store = store
        self.provider = provider
        self.notifier = notifier
        self.thresholds = normalize_ladder(thresholds)
        self.log = log
        self.structured_log = structured_log

    # ------------------------------------------------------------------
    def _load_state(self) -> AlertState:
        try:
            state = self.store.load_alert_state()
        except Exception as exc:
            self.log.warning("Alert state unreadable (%s); treating as first run.", exc)
            return AlertState()
        if state is None:
            self.log.info("No prior alert state; this cycle counts as the first check.")
            return AlertState()
        return state

    def _fetch(self) -> Tuple[Optional[StatusSnapshot], Optional[str]]:
        try:
            snapshot = self.provider.fetch_status()
        except Exception as exc:
            self.log.warning("Status fetch raised %s: %s", type(exc).__name__, exc)
            return None, f"fetch error: {exc}"
        if snapshot is None:
            return None, "status unavailable"
        return snapshot, None

    def _deliver(self, notifications: List[str]) -> Tuple[int, int, int]:
        """Return (sent, failed, skipped) counts."""
        if notifications and not getattr(self.notifier, "enabled", True):
            self.log.debug("Notifications disabled; %d message(s) not sent.", len(notifications))
            return 0, 0, len(notifications)

        sent = failed = 0
        for text in notifications:
            try:
                delivered = self.notifier.send(text)
            except Exception as exc:
                self.log.warning("Notifier raised %s: %s", type(exc).__name__, exc)
                delivered = False
            if delivered:
                sent += 1
            else:
                failed += 1
                self.log.warning("Notification not delivered: %s", text.splitlines()[0])
        return sent, failed, 0

    def _save(self, state: AlertState) -> bool:
        try:
            saved = bool(self.store.save_alert_state(state))
        except Exception as exc:
            self.log.warning("Saving alert state raised %s: %s", type(exc).__name__, exc)
            saved = False
        if not saved:
            self.log.warning("Alert state not persisted; alerts sent this cycle may repeat next cycle.")
        return saved

    # ------------------------------------------------------------------
    def run_cycle(self) -> CycleResult:
        previous = self._load_state()

        snapshot, error = self._fetch()
        if snapshot is None:
            self.log.warning("Cycle aborted (%s); alert state left untouched.", error)
            result = CycleResult(ok=False, aborted=True, state=previous, error=error)
            self._record(result)
            return result

        notifications, new_state = decide(previous, snapshot, self.thresholds)
        self.log.info(
            "Status: soc=%s grid=%s load=%.0fW pv=%.0fW -> %d notification(s)",
            snapshot.soc_percent,
            "ON" if snapshot.grid_on else "OFF",
            snapshot.load_watts,
            snapshot.pv_watts,
            len(notifications),
        )

        sent, failed, skipped = self._deliver(notifications)
        saved = self._save(new_state)

        result = CycleResult(
            ok=True,
            snapshot=snapshot,
            notifications=notifications,
            sent_count=sent,
            failed_count=failed,
            skipped_count=skipped,
            saved=saved,
            state=new_state,
        )
        self._record(result)
        return result

    def _record(self, result: CycleResult) -> None:
        if self.structured_log is None or not self.structured_log.enabled:
            return
        self.structured_log.write(
            CycleLogEntry(
                timestamp=datetime.now().isoformat(),
                aborted=result.aborted,
                snapshot=vars(result.snapshot) if result.snapshot else None,
                notifications=result.notifications or None,
                sent_count=result.sent_count,
                failed_count=result.failed_count,
                saved=result.saved,
                state=result.state.to_dict() if result.state else None,
                error=result.error,
            )
        )
