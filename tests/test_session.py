import random

import pytest

from dojo.battle import session as session_mod
from dojo.battle.models import ActionEvent, ResolvedEvent, TurnEvent, OPPONENT_TURN, PLAYER_TURN, RESOLVED
from dojo.battle.session import BattleSession
from dojo.battle.stats import EffectiveFighter, resolve_fighter, scale_for_difficulty
from dojo.core.errors import InvalidAction, ValidationError
from dojo.data.roster import all_fighters, get_fighter
from dojo.system.save import CombatStats
from helpers import FixedRng, NoDrawRng, always, scripted_policy


def lloyd():
    return resolve_fighter(get_fighter("lloyd"))


def zane(difficulty=1):
    return scale_for_difficulty(resolve_fighter(get_fighter("zane")), difficulty)


def test_lloyd_vs_zane_charge_scenario():
    player, opponent = lloyd(), zane()
    assert (player.max_hp, player.attack_min, player.attack_max) == (1400, 90, 150)
    assert (opponent.max_hp, opponent.attack_min, opponent.attack_max) == (1200, 100, 170)
    s = BattleSession(player, opponent, rng=FixedRng(), policy=always("attack"))
    for n in range(1, 7):
        assert not s.player.special_ready()
        with pytest.raises(InvalidAction):
            s.player_action("special")
        s.player_action("attack")
        assert s.player.charge == n
        s.step()
    assert s.player.special_ready()
    ev = s.player_action("special")
    assert ev.damage == 225  # low roll 90 * 2.5
    assert s.player.charge == 0
    assert not s.player.special_ready()


def test_five_attacks_unlock_a_five_charge_fighter():
    s = BattleSession(zane(), lloyd(), rng=FixedRng(), policy=always("attack"))
    for _ in range(5):
        s.player_action("attack")
        s.step()
    assert s.player.special_ready()


def test_charge_counter_stays_in_bounds():
    rng = random.Random(3)
    s = BattleSession(lloyd(), zane(), rng=rng)
    required = s.player.fighter.special_required
    while not s.is_over():
        assert 0 <= s.player.charge <= required
        assert 0 <= s.opponent.charge <= s.opponent.fighter.special_required
        if s.phase == PLAYER_TURN:
            s.player_action("special" if s.player.special_ready() else "attack")
        else:
            s.step()


def test_rejected_special_leaves_state_untouched():
    s = BattleSession(lloyd(), zane(), rng=FixedRng())
    before = s.snapshot()
    with pytest.raises(InvalidAction) as exc:
        s.player_action("special")
    assert exc.value.action == "special"
    assert s.snapshot() == before
    assert s.events == []


def test_actions_outside_player_turn_are_rejected():
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=always("attack"))
    s.player_action("attack")
    assert s.phase == OPPONENT_TURN
    with pytest.raises(InvalidAction, match="not your turn"):
        s.player_action("attack")
    s.step()
    with pytest.raises(InvalidAction, match="unknown action"):
        s.player_action("defend")


def test_resolved_is_terminal():
    s = BattleSession(lloyd(), zane(), rng=FixedRng())
    s.opponent.hp = 1
    s.player_action("attack")
    assert s.phase == RESOLVED
    with pytest.raises(InvalidAction, match="over"):
        s.player_action("attack")
    with pytest.raises(InvalidAction):
        s.set_auto(True)
    assert s.step() is None
    assert s.pending() is False


def test_defend_flag_is_one_shot():
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=scripted_policy("defend", "attack"))
    first = s.player_action("attack")
    assert first.damage == 90 and not first.defended
    guard = s.step()
    assert guard.action == "defend"
    assert s.opponent.defending
    halved = s.player_action("attack")
    assert halved.defended and halved.damage == 45
    assert not s.opponent.defending
    s.step()
    full = s.player_action("attack")
    assert not full.defended and full.damage == 90


def test_defender_first_resolution_player_wins():
    cues = []
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), on_cue=cues.append)
    s.opponent.hp = 50
    s.player.hp = 1
    ev = s.player_action("attack")
    assert s.winner == "player"
    assert s.outcome() == "PLAYER_WIN"
    # authoritative hp stays unclamped, display is clamped
    assert s.opponent.hp == -40
    assert ev.target_hp == 0
    assert s.snapshot()["opponent"]["hp"] == 0
    assert isinstance(s.events[-1], ResolvedEvent)
    assert cues == ["attack", "win"]


def test_opponent_can_win():
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=always("attack"))
    s.player.hp = 100
    s.player_action("attack")
    ev = s.step()
    assert ev.side == "opponent"
    assert s.winner == "opponent"
    assert s.outcome() == "PLAYER_LOSS"
    assert s.cues[-1] == "lose"
    assert s.state.auto_mode is False


def test_inconsistent_policy_is_downgraded(monkeypatch):
    warnings = []
    monkeypatch.setattr(session_mod.logger, "warn", lambda msg, **kw: warnings.append(msg))
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=always("special"))
    s.player_action("attack")
    ev = s.step()
    assert ev.action == "attack"
    assert ev.damage == 100
    assert warnings == ["InconsistentPolicyOutput"]


def test_battles_always_resolve():
    fighters = [resolve_fighter(f) for f in all_fighters()]
    for seed, player in enumerate(fighters):
        for opp in fighters:
            if opp.id == player.id:
                continue
            s = BattleSession(player, scale_for_difficulty(opp, 1 + seed % 10),
                              difficulty=1 + seed % 10, rng=random.Random(seed))
            assert s.run_auto() in ("PLAYER_WIN", "PLAYER_LOSS")
            assert s.is_over()


def test_damaged_side_hp_strictly_decreases():
    s = BattleSession(lloyd(), zane(5), difficulty=5, rng=random.Random(11))
    hp = {"player": s.player.hp, "opponent": s.opponent.hp}
    s.set_auto(True)
    while s.pending():
        ev = s.step()
        if ev.action == "defend":
            continue
        target = s.state.other(ev.side)
        now = s.state.side(target).hp
        assert now < hp[target]
        hp[target] = now


def test_auto_uses_lower_chance_on_first_action():
    # 0.4 is above the fresh-auto chance but below the continuing one
    rng = FixedRng(0.4, 0.4)
    s = BattleSession(lloyd(), zane(), rng=rng, policy=always("attack"))
    s.player.charge = s.player.fighter.special_required
    s.set_auto(True)
    first = s.step()
    assert first.auto and first.action == "attack"
    s.step()
    second = s.step()
    assert second.auto and second.action == "special"


def test_auto_does_not_draw_when_uncharged():
    s = BattleSession(lloyd(), zane(), rng=NoDrawRng(), policy=always("attack"))
    s.set_auto(True)
    ev = s.step()
    assert ev.action == "attack" and ev.auto


def test_auto_turned_off_returns_control():
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=always("attack"))
    s.set_auto(True)
    assert s.pending()
    s.set_auto(False)
    assert not s.pending()
    assert s.step() is None


def test_record_tracks_highest_hit_and_specials():
    stats = CombatStats(highest_damage=100)
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), record=stats, policy=always("attack"))
    s.player_action("attack")
    assert stats.highest_damage == 100
    s.step()
    s.player.charge = 6
    s.player_action("special")
    assert stats.highest_damage == 225
    assert stats.special_uses == 1


def test_events_are_ordered_and_typed():
    seen = []
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), on_event=seen.append, policy=always("defend"))
    s.player_action("attack")
    s.step()
    assert [type(e) for e in seen] == [ActionEvent, TurnEvent, ActionEvent, TurnEvent]
    assert seen[1].next_side == "opponent"
    assert seen[3].next_side == "player"
    assert s.cues == ["attack", "defend"]
    assert seen == s.events


def test_difficulty_must_be_positive():
    with pytest.raises(ValidationError):
        BattleSession(lloyd(), zane(), difficulty=0)


def test_custom_fighters_charge_scenario():
    player = EffectiveFighter("p", "P", 1400, 90, 150, 2.5, 6)
    opponent = EffectiveFighter("o", "O", 1200, 100, 170, 2.0, 5)
    s = BattleSession(player, opponent, rng=FixedRng(), policy=always("attack"))
    for _ in range(5):
        s.player_action("attack")
        s.step()
    assert s.player.charge == 5
    with pytest.raises(InvalidAction):
        s.player_action("special")
    s.player_action("attack")
    s.step()
    assert s.player.charge == 6
    ev = s.player_action("special")
    assert ev.damage == 225
    assert s.player.charge == 0


def test_run_auto_switches_auto_off_on_resolution():
    s = BattleSession(lloyd(), zane(), rng=random.Random(21))
    s.run_auto()
    assert s.is_over()
    assert s.state.auto_mode is False
    assert not s.pending()
    assert s.step() is None


def test_unknown_policy_choice_is_downgraded(monkeypatch):
    warnings = []
    monkeypatch.setattr(session_mod.logger, "warn", lambda msg, **kw: warnings.append(msg))
    s = BattleSession(lloyd(), zane(), rng=FixedRng(), policy=always("heal"))
    s.player_action("attack")
    ev = s.step()
    assert ev.action == "attack"
    assert ev.damage == 100
    assert s.cues == ["attack", "attack"]
    assert warnings == ["InconsistentPolicyOutput"]
