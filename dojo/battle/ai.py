"""Opponent decision heuristic.

A pure function of the battle state plus exactly one draw from the supplied
RNG, so a seeded ``random.Random`` (or a scripted stub exposing ``random()``)
pins down which branch is taken. Higher difficulty makes the opponent defend
less and time its specials better; it never proposes a special while
uncharged.
"""
from __future__ import annotations
import random
from dojo.battle.models import Action, BattleState

LOW_HP_DEFEND = 0.30
FINISHER_HP = 0.25

def defend_bias(difficulty: int) -> float:
    return 0.6 - difficulty * 0.04

def special_bias(difficulty: int) -> float:
    return 0.4 + difficulty * 0.05

def choose_action(state: BattleState, rng: random.Random) -> Action:
    d = state.difficulty
    me = state.opponent
    foe = state.player
    r = rng.random()

    if me.hp_fraction < LOW_HP_DEFEND and r < defend_bias(d):
        return "defend"
    if me.special_ready():
        if foe.hp_fraction < FINISHER_HP and r < special_bias(d):
            return "special"
        if r < 0.6 + d * 0.03:
            return "attack"
        return "special"
    return "attack" if r < 0.85 - d * 0.03 else "defend"

__all__ = ["choose_action","defend_bias","special_bias"]
