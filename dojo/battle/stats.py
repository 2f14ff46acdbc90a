"""Effective combat stats: upgrade bonuses and difficulty scaling.

Both helpers are pure and return new frozen records; base definitions from
the roster are never touched.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dojo.core.errors import ValidationError
from dojo.data.roster import FighterDefinition
from dojo.data.weapons import clamp_level, get_weapon

ATTACK_STEP = 0.07
HP_STEP = 0.02

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

@dataclass(frozen=True)
class EffectiveFighter:
    id: str
    name: str
    max_hp: int
    attack_min: int
    attack_max: int
    special_multiplier: float
    special_required: int
    difficulty: int = 1

    @classmethod
    def from_definition(cls, d: FighterDefinition) -> "EffectiveFighter":
        return cls(id=d.id, name=d.name, max_hp=d.max_hp, attack_min=d.attack_min,
                   attack_max=d.attack_max, special_multiplier=d.special_multiplier,
                   special_required=d.special_required)

def resolve_fighter(definition: FighterDefinition, upgrades: Optional[Mapping[str, int]] = None) -> EffectiveFighter:
    """Apply a character's weapon levels to its base attack range."""
    lo = definition.attack_min
    hi = definition.attack_max
    for weapon_id, level in (upgrades or {}).items():
        w = get_weapon(weapon_id)
        lvl = clamp_level(level)
        lo += w.min_bonus * lvl
        hi += w.max_bonus * lvl
    base = EffectiveFighter.from_definition(definition)
    return replace(base, attack_min=lo, attack_max=max(lo, hi))

def attack_factor(difficulty: int) -> float:
    return 1 + (difficulty - 1) * ATTACK_STEP

def hp_factor(difficulty: int) -> float:
    return 1 + (difficulty - 1) * HP_STEP

def scale_for_difficulty(fighter: EffectiveFighter, difficulty: int) -> EffectiveFighter:
    """Opponent-side scaling. Must be applied once, at battle start."""
    if int(difficulty) < 1:
        raise ValidationError(f"difficulty must be >= 1, got {difficulty}")
    difficulty = int(difficulty)
    if fighter.difficulty != 1:
        raise ValidationError(f"{fighter.id} is already scaled for difficulty {fighter.difficulty}")
    af = attack_factor(difficulty)
    return replace(
        fighter,
        attack_min=max(1, round_half_up(fighter.attack_min * af)),
        attack_max=max(1, round_half_up(fighter.attack_max * af)),
        max_hp=round_half_up(fighter.max_hp * hp_factor(difficulty)),
        difficulty=difficulty,
    )

__all__ = ["EffectiveFighter","resolve_fighter","scale_for_difficulty","attack_factor","hp_factor","round_half_up"]
