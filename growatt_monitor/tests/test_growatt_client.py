# growatt_monitor/tests/test_growatt_client.py

import requests

from growatt_monitor.config import GrowattConfig
from growatt_monitor.logging import get_logger
from growatt_monitor.services.growatt_client import GrowattClient
from growatt_monitor.tests.fake_provider import FakeSession


LOG = get_logger("growatt-test")
BASE = "https://growatt.test"

LOGIN_OK = (200, {"result": 1, "msg": "OK"})
PLANTS = (200, [{"id": "4242", "plantName": "Home"}])
DEVICES = (200, {"result": 1, "obj": {"datas": [{"sn": "STO123", "deviceTypeName": "storage"}]}})
STATUS = (
    200,
    {
        "result": 1,
        "obj": {
            "capacity": "41",
            "vAcInput": "228.1",
            "fAcInput": "50.01",
            "loadPower": "380",
            "panelPower": "0",
            "vBat": "51.9",
        },
    },
)


def _cfg(**overrides):
    cfg = GrowattConfig(username="user", password="secret", server=BASE, timeout=5)
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def _responses(**overrides):
    responses = {
        f"{BASE}/login": LOGIN_OK,
        f"{BASE}/index/getPlantListTitle": PLANTS,
        f"{BASE}/panel/getDevicesByPlantList": DEVICES,
        f"{BASE}/panel/storage/getStoragesStatusData": STATUS,
        f"{BASE}/logout": (200, {}),
    }
    for key, value in overrides.items():
        responses[f"{BASE}/{key}"] = value
    return responses


def test_fetch_status_happy_path():
    session = FakeSession(_responses())
    client = GrowattClient(_cfg(), LOG, session=session)

    snap = client.fetch_status()

    assert snap is not None
    assert snap.soc_percent == 41
    assert snap.grid_on is True
    assert snap.plant_id == "4242"
    assert snap.device_sn == "STO123"
    assert snap.battery_volts == 51.9

    urls = [call["url"] for call in session.calls]
    assert urls == [
        f"{BASE}/login",
        f"{BASE}/index/getPlantListTitle",
        f"{BASE}/panel/getDevicesByPlantList",
        f"{BASE}/panel/storage/getStoragesStatusData",
        f"{BASE}/logout",
    ]
    login_call = session.calls[0]
    assert login_call["data"]["account"] == "user"
    assert login_call["data"]["password"] == "secret"
    status_call = session.calls[3]
    assert status_call["params"] == {"plantId": "4242"}
    assert status_call["data"] == {"storageSn": "STO123"}
    assert all(call["timeout"] == 5 for call in session.calls)


def test_pinned_plant_and_device_skip_discovery():
    session = FakeSession(_responses())
    client = GrowattClient(_cfg(plant_id="99", device_sn="PINNED"), LOG, session=session)

    snap = client.fetch_status()

    assert snap.device_sn == "PINNED"
    urls = [call["url"] for call in session.calls]
    assert f"{BASE}/index/getPlantListTitle" not in urls
    assert f"{BASE}/panel/getDevicesByPlantList" not in urls


def test_rejected_login_returns_none_without_logout():
    session = FakeSession(_responses(login=(200, {"result": 0, "msg": "bad password"})))
    client = GrowattClient(_cfg(), LOG, session=session)

    assert client.fetch_status() is None
    assert [call["url"] for call in session.calls] == [f"{BASE}/login"]


def test_network_error_returns_none():
    session = FakeSession(_responses(login=(requests.ConnectionError("unreachable"), None)))
    client = GrowattClient(_cfg(), LOG, session=session)

    assert client.fetch_status() is None


def test_http_error_on_status_still_logs_out():
    session = FakeSession(_responses(**{"panel/storage/getStoragesStatusData": (502, {})}))
    client = GrowattClient(_cfg(), LOG, session=session)

    assert client.fetch_status() is None
    assert session.calls[-1]["url"] == f"{BASE}/logout"


def test_non_json_status_returns_none():
    session = FakeSession(_responses(**{"panel/storage/getStoragesStatusData": (200, ValueError("html"))}))
    client = GrowattClient(_cfg(), LOG, session=session)

    assert client.fetch_status() is None


def test_empty_plant_list_returns_none():
    session = FakeSession(_responses(**{"index/getPlantListTitle": (200, [])}))
    client = GrowattClient(_cfg(), LOG, session=session)

    assert client.fetch_status() is None


def test_sparse_status_payload_uses_defaults():
    session = FakeSession(_responses(**{"panel/storage/getStoragesStatusData": (200, {"result": 1, "obj": {}})}))
    client = GrowattClient(_cfg(), LOG, session=session)

    snap = client.fetch_status()

    assert snap.soc_percent == -1
    assert snap.grid_on is False


def test_missing_credentials_short_circuit():
    session = FakeSession(_responses())
    client = GrowattClient(_cfg(password=None), LOG, session=session)

    assert not client.enabled
    assert client.fetch_status() is None
    assert session.calls == []
