"""Weapon upgrade shop.

Prices grow linearly with the level being bought: buying level ``n`` of a
weapon costs ``base_cost * n``. A purchase mutates the profile in place; the
caller is expected to persist it afterwards.
"""
from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import List, Optional

from dojo.battle.progression import evaluate_achievements
from dojo.core.errors import InsufficientCoins, UpgradeMaxed
from dojo.core.logging import logger
from dojo.data.roster import get_fighter
from dojo.data.weapons import MAX_LEVEL, Weapon, get_weapon, set_upgrade_level, upgrade_level
from dojo.system.save import PlayerProfile

@dataclass
class Purchase:
    weapon: Weapon
    character_id: str
    level: int
    cost: int
    unlocked: List[str] = field(default_factory=list)

def upgrade_cost(weapon: Weapon, current_level: int) -> Optional[int]:
    """Price of the next level, or None when already maxed."""
    if current_level >= MAX_LEVEL:
        return None
    return weapon.base_cost * (current_level + 1)

def purchase_upgrade(profile: PlayerProfile, character_id: str, weapon_id: str,
                     now: Optional[float] = None) -> Purchase:
    get_fighter(character_id)
    weapon = get_weapon(weapon_id)
    current = upgrade_level(profile.upgrades, character_id, weapon_id)
    cost = upgrade_cost(weapon, current)
    if cost is None:
        raise UpgradeMaxed(weapon_id, current)
    if profile.coins < cost:
        raise InsufficientCoins(cost, profile.coins)
    profile.coins -= cost
    level = set_upgrade_level(profile.upgrades, character_id, weapon_id, current + 1)
    profile.stats.purchases += 1
    unlocked = evaluate_achievements(profile, time.time() if now is None else now)
    logger.info("UpgradePurchased", account=profile.account, character=character_id,
                weapon=weapon_id, level=level, cost=cost)
    return Purchase(weapon=weapon, character_id=character_id, level=level, cost=cost, unlocked=unlocked)

__all__ = ["Purchase","upgrade_cost","purchase_upgrade"]
