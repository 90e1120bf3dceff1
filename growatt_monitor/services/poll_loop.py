# growatt_monitor/services/poll_loop.py

from __future__ import annotations

import time
from typing import Callable, Optional

from growatt_monitor.services.alert_engine import AlertEngine, CycleResult


def run_once(
    engine: AlertEngine,
    log,
    on_result: Optional[Callable[[CycleResult], None]] = None,
) -> CycleResult:
    result = engine.run_cycle()
    if on_result is not None:
        on_result(result)
    if result.aborted:
        log.error("Cycle aborted: %s", result.error)
    return result


def run_forever(
    engine: AlertEngine,
    interval_seconds: float,
    log,
    *,
    on_result: Optional[Callable[[CycleResult], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    """
    Run cycles back to back, never overlapping.

    The sleep starts only after a cycle has persisted its state, so the
    interval is measured from completion rather than start. A failing cycle
    is logged and the loop carries on. Returns the number of cycles run.
    """
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        try:
            result = engine.run_cycle()
        except Exception:
            log.exception("Unexpected error during cycle; continuing.")
        else:
            if on_result is not None:
                try:
                    on_result(result)
                except Exception:
                    log.exception("Cycle result hook failed; continuing.")
        cycles += 1
        if max_cycles is not None and cycles >= max_cycles:
            break
        log.debug("Sleeping %ss until next poll", interval_seconds)
        sleep(interval_seconds)
    return cycles
