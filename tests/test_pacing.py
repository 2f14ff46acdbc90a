from dojo.battle.pacing import Pacer
from dojo.battle.session import BattleSession
from dojo.battle.stats import resolve_fighter
from dojo.data.roster import get_fighter
from helpers import FixedRng, always


def _session(**kw):
    return BattleSession(resolve_fighter(get_fighter("kai")), resolve_fighter(get_fighter("cole")),
                         rng=FixedRng(), **kw)


def test_no_delay_without_pending_action():
    slept = []
    pacer = Pacer(sleep=slept.append)
    s = _session()
    assert pacer.delay_for(s) is None
    assert pacer.advance(s) is None
    assert slept == []


def test_drain_runs_opponent_turn_then_stops():
    slept = []
    pacer = Pacer(opponent_delay_ms=700, auto_delay_ms=600, sleep=slept.append)
    s = _session(policy=always("attack"))
    s.player_action("attack")
    events = list(pacer.drain(s))
    assert [e.side for e in events] == ["opponent"]
    assert slept == [0.7]
    assert s.phase == "PLAYER_TURN"


def test_drain_auto_to_resolution():
    slept = []
    pacer = Pacer(opponent_delay_ms=700, auto_delay_ms=600, sleep=slept.append)
    s = _session(policy=always("attack"))
    s.set_auto(True)
    events = list(pacer.drain(s))
    assert s.is_over()
    assert len(events) == len(slept)
    assert s.state.auto_mode is False
    assert not s.pending()
    assert set(slept) == {0.7, 0.6}
    assert all(e.auto for e in events if e.side == "player")


def test_drain_stop_callback():
    pacer = Pacer(0, 0, sleep=lambda _: None)
    s = _session(policy=always("attack"))
    s.set_auto(True)
    taken = []
    for ev in pacer.drain(s, stop=lambda: len(taken) >= 3):
        taken.append(ev)
    assert len(taken) == 3
    assert not s.is_over()


def test_zero_delay_skips_sleep():
    calls = []
    pacer = Pacer(0, 0, sleep=calls.append)
    s = _session(policy=always("attack"))
    s.player_action("attack")
    assert pacer.advance(s) is not None
    assert calls == []
