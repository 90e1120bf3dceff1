from growatt_monitor.logging import get_logger
from growatt_monitor.services.alert_engine import AlertEngine
from growatt_monitor.services.app_state import AppState
from growatt_monitor.services.poll_loop import run_forever, run_once
from growatt_monitor.tests.fake_provider import FakeStatusProvider, RecordingNotifier, snapshot


LOG = get_logger("loop-test")


class EventLog:
    """Records the order of persistence and sleeps."""

    def __init__(self):
        self.events = []

    def sleep(self, seconds):
        self.events.append(("sleep", seconds))


class TracingStore(AppState):
    def __init__(self, events):
        super().__init__(persist=False)
        self.events = events

    def save_alert_state(self, state):
        self.events.append(("save", state.last_grid_on))
        return super().save_alert_state(state)


def test_sleep_follows_persistence_and_cycles_never_overlap():
    trace = EventLog()
    store = TracingStore(trace.events)
    provider = FakeStatusProvider([snapshot(grid_on=True), snapshot(grid_on=False), snapshot(grid_on=True)])
    engine = AlertEngine(store, provider, RecordingNotifier(), (30,), LOG)

    cycles = run_forever(engine, 300, LOG, sleep=trace.sleep, max_cycles=3)

    assert cycles == 3
    assert trace.events == [
        ("save", True),
        ("sleep", 300),
        ("save", False),
        ("sleep", 300),
        ("save", True),
    ]


def test_failing_cycles_do_not_stop_the_loop():
    trace = EventLog()
    provider = FakeStatusProvider([None, RuntimeError("boom"), snapshot(soc=50)])
    notifier = RecordingNotifier()
    engine = AlertEngine(AppState(persist=False), provider, notifier, (30,), LOG)
    results = []

    run_forever(engine, 5, LOG, sleep=trace.sleep, max_cycles=3, on_result=results.append)

    assert [r.aborted for r in results] == [True, True, False]
    assert len(notifier.delivered) == 1


def test_unexpected_engine_error_is_logged_and_skipped():
    class CrashingEngine:
        def __init__(self):
            self.calls = 0

        def run_cycle(self):
            self.calls += 1
            raise RuntimeError("unexpected")

    engine = CrashingEngine()
    trace = EventLog()

    run_forever(engine, 1, LOG, sleep=trace.sleep, max_cycles=2)

    assert engine.calls == 2
    assert trace.events == [("sleep", 1)]


def test_run_once_reports_abort():
    engine = AlertEngine(AppState(persist=False), FakeStatusProvider([None]), RecordingNotifier(), (30,), LOG)
    seen = []

    result = run_once(engine, LOG, on_result=seen.append)

    assert result.aborted
    assert seen == [result]
