"""Weapon table and upgrade ledger helpers.

Each weapon adds a fixed amount to a fighter's attack range per upgrade
level. Levels are tracked per (character, weapon) in the profile's ledger:

    {"lloyd": {"katana": 2, "shuriken": 1}, "kai": {...}}
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from dojo.core.errors import CatalogLookupFailure

MAX_LEVEL = 5

UpgradeLedger = Dict[str, Dict[str, int]]

@dataclass(frozen=True)
class Weapon:
    id: str
    name: str
    min_bonus: int   # added to attack_min per level
    max_bonus: int   # added to attack_max per level
    base_cost: int

WEAPONS: Dict[str, Weapon] = {
    "katana":    Weapon("katana", "Katana", min_bonus=4, max_bonus=6, base_cost=60),
    "nunchucks": Weapon("nunchucks", "Nunchucks", min_bonus=2, max_bonus=9, base_cost=55),
    "shuriken":  Weapon("shuriken", "Shuriken", min_bonus=6, max_bonus=3, base_cost=50),
    "scythe":    Weapon("scythe", "Scythe of Quakes", min_bonus=5, max_bonus=8, base_cost=90),
}

def get_weapon(weapon_id: str) -> Weapon:
    try:
        return WEAPONS[weapon_id]
    except KeyError:
        raise CatalogLookupFailure("weapon", weapon_id) from None

def clamp_level(level: int) -> int:
    return max(0, min(int(level), MAX_LEVEL))

def upgrade_level(ledger: UpgradeLedger, character_id: str, weapon_id: str) -> int:
    return clamp_level(ledger.get(character_id, {}).get(weapon_id, 0))

def set_upgrade_level(ledger: UpgradeLedger, character_id: str, weapon_id: str, level: int) -> int:
    get_weapon(weapon_id)
    level = clamp_level(level)
    ledger.setdefault(character_id, {})[weapon_id] = level
    return level

__all__ = ["MAX_LEVEL","UpgradeLedger","Weapon","WEAPONS","get_weapon","clamp_level","upgrade_level","set_upgrade_level"]
