from __future__ import annotations
import random
from dojo.battle.stats import EffectiveFighter, round_half_up

DEFEND_FACTOR = 0.5

def roll_attack(attacker: EffectiveFighter, rng: random.Random) -> int:
    return rng.randint(attacker.attack_min, attacker.attack_max)

def compute_damage(attacker: EffectiveFighter, is_special: bool, rng: random.Random) -> int:
    base = roll_attack(attacker, rng)
    if is_special:
        base = round_half_up(base * attacker.special_multiplier)
    return max(1, base)

def apply_defense(damage: int) -> int:
    # one-shot guard: caller clears the defending flag after this hit
    return max(1, round_half_up(damage * DEFEND_FACTOR))

def can_special(charge: int, fighter: EffectiveFighter) -> bool:
    return charge >= fighter.special_required

def next_charge(charge: int, fighter: EffectiveFighter, used_special: bool) -> int:
    if used_special:
        return 0
    return min(charge + 1, fighter.special_required)
