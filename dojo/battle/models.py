from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from dojo.battle.stats import EffectiveFighter
from dojo.battle.mechanics import can_special

Side = Literal["player", "opponent"]
Action = Literal["attack", "special", "defend"]
Cue = Literal["attack", "special", "defend", "win", "lose"]

PLAYER_TURN = "PLAYER_TURN"
OPPONENT_TURN = "OPPONENT_TURN"
RESOLVED = "RESOLVED"

@dataclass
class Combatant:
    fighter: EffectiveFighter
    hp: int = 0              # unclamped; may dip below zero on the killing blow
    charge: int = 0
    defending: bool = False

    def __post_init__(self):
        if self.hp <= 0:
            self.hp = self.fighter.max_hp

    @property
    def display_hp(self) -> int:
        return max(0, self.hp)

    @property
    def hp_fraction(self) -> float:
        return self.hp / max(1, self.fighter.max_hp)

    def is_down(self) -> bool:
        return self.hp <= 0

    def special_ready(self) -> bool:
        return can_special(self.charge, self.fighter)

@dataclass
class BattleState:
    player: Combatant
    opponent: Combatant
    difficulty: int = 1
    phase: str = PLAYER_TURN
    auto_mode: bool = False
    winner: Optional[Side] = None

    @property
    def turn(self) -> Side:
        return "opponent" if self.phase == OPPONENT_TURN else "player"

    def side(self, which: Side) -> Combatant:
        return self.player if which == "player" else self.opponent

    def other(self, which: Side) -> Side:
        return "opponent" if which == "player" else "player"

# --- events handed to presentation collaborators -------------------------

@dataclass(frozen=True)
class ActionEvent:
    side: Side
    fighter_id: str
    action: Action
    damage: int = 0
    defended: bool = False
    target_hp: int = 0       # clamped for display
    auto: bool = False
    kind: str = field(default="action", init=False)

@dataclass(frozen=True)
class TurnEvent:
    next_side: Side
    kind: str = field(default="turn", init=False)

@dataclass(frozen=True)
class ResolvedEvent:
    winner: Side
    kind: str = field(default="resolved", init=False)

BattleEvent = Union[ActionEvent, TurnEvent, ResolvedEvent]

__all__ = [
    "Side","Action","Cue","PLAYER_TURN","OPPONENT_TURN","RESOLVED",
    "Combatant","BattleState","ActionEvent","TurnEvent","ResolvedEvent","BattleEvent",
]
