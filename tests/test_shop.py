import pytest

from dojo.battle.stats import resolve_fighter
from dojo.core.errors import CatalogLookupFailure, InsufficientCoins, UpgradeMaxed
from dojo.data.roster import get_fighter
from dojo.data.weapons import MAX_LEVEL, WEAPONS, upgrade_level
from dojo.system.save import PlayerProfile
from dojo.system.shop import purchase_upgrade, upgrade_cost


def test_cost_grows_per_level():
    katana = WEAPONS["katana"]
    assert [upgrade_cost(katana, lvl) for lvl in range(MAX_LEVEL)] == [60, 120, 180, 240, 300]
    assert upgrade_cost(katana, MAX_LEVEL) is None


def test_purchase_debits_and_levels_up():
    profile = PlayerProfile(account="buyer", coins=100)
    bought = purchase_upgrade(profile, "lloyd", "katana", now=1.0)
    assert (bought.level, bought.cost) == (1, 60)
    assert profile.coins == 40
    assert upgrade_level(profile.upgrades, "lloyd", "katana") == 1
    assert profile.stats.purchases == 1
    assert bought.unlocked == ["gearing_up"]
    # only that character benefits
    eff = resolve_fighter(get_fighter("lloyd"), profile.upgrades["lloyd"])
    assert eff.attack_min == 94 and eff.attack_max == 156


def test_insufficient_coins_leaves_profile_alone():
    profile = PlayerProfile(account="buyer", coins=10)
    with pytest.raises(InsufficientCoins) as exc:
        purchase_upgrade(profile, "kai", "scythe")
    assert exc.value.cost == 90 and exc.value.balance == 10
    assert profile.coins == 10
    assert profile.upgrades == {}
    assert profile.stats.purchases == 0


def test_maxed_weapon():
    profile = PlayerProfile(account="buyer", coins=10_000)
    for _ in range(MAX_LEVEL):
        purchase_upgrade(profile, "nya", "shuriken")
    with pytest.raises(UpgradeMaxed):
        purchase_upgrade(profile, "nya", "shuriken")
    assert profile.coins == 10_000 - 50 * (1 + 2 + 3 + 4 + 5)


def test_unknown_ids():
    profile = PlayerProfile(account="buyer", coins=500)
    with pytest.raises(CatalogLookupFailure):
        purchase_upgrade(profile, "lloyd", "bazooka")
    with pytest.raises(CatalogLookupFailure):
        purchase_upgrade(profile, "nobody", "katana")
    assert profile.coins == 500
