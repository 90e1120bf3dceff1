import pytest

from growatt_monitor.services.threshold_ladder import (
    REARM_BUFFER,
    evaluate_thresholds,
    normalize_ladder,
)
from growatt_monitor.tests.fake_provider import snapshot


LADDER = (30, 20, 10)


def test_normalize_ladder_sorts_and_dedupes():
    assert normalize_ladder([10, 30, 20, 30]) == (30, 20, 10)


def test_single_rung_fires_at_threshold():
    decision = evaluate_thresholds(LADDER, {}, snapshot(soc=30))

    assert decision.fired == [30]
    assert decision.sent == {30: True, 20: False, 10: False}
    assert "Battery low: 30% (<= 30%)" in decision.notifications[0]


def test_no_rung_above_ladder():
    decision = evaluate_thresholds(LADDER, {}, snapshot(soc=31))

    assert decision.notifications == []
    assert decision.sent == {30: False, 20: False, 10: False}


def test_missed_polls_fire_every_crossed_rung_highest_first():
    decision = evaluate_thresholds(LADDER, {}, snapshot(soc=9))

    assert decision.fired == [30, 20, 10]
    for threshold, text in zip(decision.fired, decision.notifications):
        assert f"(<= {threshold}%)" in text


def test_active_rung_does_not_repeat():
    decision = evaluate_thresholds(LADDER, {30: True}, snapshot(soc=25))

    assert decision.notifications == []
    assert decision.sent[30] is True


@pytest.mark.parametrize("soc,rearmed", [(30 + REARM_BUFFER, False), (30 + REARM_BUFFER + 1, True)])
def test_rearm_needs_buffer(soc, rearmed):
    decision = evaluate_thresholds(LADDER, {30: True}, snapshot(soc=soc))

    assert decision.sent[30] is not rearmed
    assert (decision.rearmed == [30]) is rearmed
    assert decision.notifications == []


def test_dip_after_rearm_fires_again():
    first = evaluate_thresholds(LADDER, {30: True}, snapshot(soc=40))
    second = evaluate_thresholds(LADDER, first.sent, snapshot(soc=29))

    assert second.fired == [30]


def test_unknown_soc_is_neutral():
    sent = {30: True, 20: False, 99: True}
    decision = evaluate_thresholds(LADDER, sent, snapshot(soc=-1))

    assert decision.notifications == []
    assert decision.sent == sent
    assert decision.sent is not sent


def test_stale_rungs_are_dropped_on_known_soc():
    decision = evaluate_thresholds((25, 15), {30: True, 25: True}, snapshot(soc=50))

    assert set(decision.sent) == {25, 15}
    assert decision.rearmed == [25]


def test_input_map_is_not_mutated():
    sent = {30: False}
    evaluate_thresholds(LADDER, sent, snapshot(soc=5))

    assert sent == {30: False}
