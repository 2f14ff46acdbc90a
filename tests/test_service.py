import random

import pytest

from dojo.battle.service import BattleService
from dojo.core.errors import CatalogLookupFailure, ValidationError
from dojo.system.save import PlayerProfile


def test_start_picks_other_opponent_and_scales():
    service = BattleService(random.Random(9))
    profile = PlayerProfile(account="svc", difficulty=4, upgrades={"jay": {"katana": 1}})
    setup = service.start("jay", profile=profile)
    s = setup.session
    assert setup.opponent.id != "jay"
    assert s.state.difficulty == 4
    assert s.opponent.fighter.difficulty == 4
    assert s.opponent.fighter.max_hp >= setup.opponent.max_hp
    assert s.player.fighter.attack_min == setup.player.attack_min + 4
    assert s.record is profile.stats


def test_start_explicit_opponent_and_difficulty_override():
    service = BattleService(random.Random(1))
    setup = service.start("kai", opponent_id="zane", difficulty=1)
    assert setup.opponent.id == "zane"
    assert setup.session.opponent.fighter.max_hp == 1200
    with pytest.raises(CatalogLookupFailure):
        service.start("kai", opponent_id="nobody")


def test_finish_requires_resolution():
    service = BattleService(random.Random(1))
    setup = service.start("kai", opponent_id="zane")
    with pytest.raises(ValidationError):
        service.finish(setup.session)


def test_guest_battle_skips_progression():
    service = BattleService(random.Random(2))
    setup = service.start("cole")
    setup.session.run_auto()
    report = service.finish(setup.session)
    assert report.profile is None
    assert report.coins == 0 and report.unlocked == []
    assert report.result["outcome"] in ("PLAYER_WIN", "PLAYER_LOSS")


def test_tracked_battle_updates_profile():
    service = BattleService(random.Random(3))
    profile = PlayerProfile(account="svc")
    setup = service.start("lloyd", profile=profile)
    setup.session.run_auto()
    report = service.finish(setup.session, profile, now=42.0)
    assert report.profile is profile
    assert profile.stats.total_battles == 1
    assert profile.coins == 100 + report.coins
    assert report.result["opponent_id"] == setup.opponent.id
    assert report.result["difficulty"] == 1
    assert profile.stats.highest_damage > 0
    if report.result["outcome"] == "PLAYER_WIN":
        assert "first_blood" in report.unlocked
    else:
        assert "humbled" in report.unlocked


def test_finish_settles_only_once():
    service = BattleService(random.Random(3))
    profile = PlayerProfile(account="svc")
    setup = service.start("lloyd", profile=profile)
    setup.session.run_auto()
    report = service.finish(setup.session, profile)
    coins = profile.coins
    with pytest.raises(ValidationError):
        service.finish(setup.session, profile)
    assert profile.stats.total_battles == 1
    assert profile.stats.wins + profile.stats.losses == 1
    assert sum(profile.stats.wins_by_difficulty.values()) == profile.stats.wins
    assert profile.coins == coins == 100 + report.coins


def test_guest_finish_also_once():
    service = BattleService(random.Random(4))
    setup = service.start("nya")
    setup.session.run_auto()
    service.finish(setup.session)
    assert setup.session.settled
    with pytest.raises(ValidationError):
        service.finish(setup.session)
