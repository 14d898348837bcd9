from xmrig_idle.engine.state import decide
from xmrig_idle.engine.types import Config, RunState


def _config(**kwargs) -> Config:
    base = {"threshold_ms": 5000, "interval_ms": 1000}
    base.update(kwargs)
    return Config(**base)


def test_decide_active_pauses_until_threshold():
    decision = decide(3000, _config())
    assert decision.target == RunState.PAUSED
    assert decision.sleep_ms == 2000


def test_decide_fresh_input_sleeps_full_threshold():
    decision = decide(0, _config())
    assert decision.target == RunState.PAUSED
    assert decision.sleep_ms == 5000


def test_decide_idle_at_threshold_runs():
    decision = decide(5000, _config())
    assert decision.target == RunState.RUNNING
    assert decision.sleep_ms == 1000


def test_decide_idle_over_threshold_runs():
    decision = decide(60_000, _config())
    assert decision.target == RunState.RUNNING
    assert decision.sleep_ms == 1000


def test_decide_one_ms_before_threshold():
    decision = decide(4999, _config())
    assert decision.target == RunState.PAUSED
    assert decision.sleep_ms == 1


def test_decide_fixed_interval_ignores_remaining_time():
    decision = decide(3000, _config(adaptive=False))
    assert decision.target == RunState.PAUSED
    assert decision.sleep_ms == 1000


def test_decide_fixed_interval_idle():
    decision = decide(7000, _config(adaptive=False))
    assert decision.target == RunState.RUNNING
    assert decision.sleep_ms == 1000
