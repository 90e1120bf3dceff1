import pytest

from growatt_monitor.models.alert_state import AlertState
from growatt_monitor.models.status import StatusSnapshot


def test_from_raw_maps_growatt_fields():
    raw = {
        "capacity": "64",
        "vAcInput": "231.5",
        "fAcInput": "50.02",
        "loadPower": "640",
        "panelPower": "1200",
        "vBat": "52.8",
    }
    snap = StatusSnapshot.from_raw(raw, plant_id="123", device_sn="ABC")

    assert snap.soc_percent == 64
    assert snap.grid_on is True
    assert snap.load_watts == 640.0
    assert snap.pv_watts == 1200.0
    assert snap.battery_volts == 52.8
    assert snap.device_sn == "ABC"


@pytest.mark.parametrize(
    "v_in,f_in,expected",
    [(10.5, 40.1, True), (230, 40, False), (10, 50, False), (0, 0, False)],
)
def test_grid_requires_both_signals(v_in, f_in, expected):
    snap = StatusSnapshot.from_raw({"capacity": 50, "vAcInput": v_in, "fAcInput": f_in})
    assert snap.grid_on is expected


@pytest.mark.parametrize("capacity", [None, "", "n/a"])
def test_missing_soc_is_unknown(capacity):
    raw = {} if capacity is None else {"capacity": capacity}
    snap = StatusSnapshot.from_raw(raw)

    assert snap.soc_percent == -1
    assert snap.soc_known is False


def test_empty_payload_defaults():
    snap = StatusSnapshot.from_raw(None)

    assert snap.grid_on is False
    assert snap.load_watts == 0.0
    assert snap.input_voltage == 0.0


def test_alert_state_defaults():
    state = AlertState()
    assert state.last_grid_on is None
    assert state.sent == {}


def test_alert_state_dict_uses_string_keys_highest_first():
    state = AlertState(last_grid_on=False, sent={10: False, 30: True, 20: True})

    data = state.to_dict()

    assert list(data["sent"]) == ["30", "20", "10"]
    assert AlertState.from_dict(data) == state


@pytest.mark.parametrize(
    "payload",
    [[], {"last_grid_on": "yes"}, {"sent": [30]}, {"sent": {"high": True}}],
)
def test_alert_state_rejects_malformed_payload(payload):
    with pytest.raises(ValueError):
        AlertState.from_dict(payload)
