"""Turn engine for one player-vs-opponent battle.

A ``BattleSession`` owns its ``BattleState`` exclusively and is not
re-entrant. Player input goes through :meth:`BattleSession.player_action`;
opponent turns and auto-mode player turns are *deferred* actions that the
caller runs with :meth:`BattleSession.step` whenever its pacing allows
(see :mod:`dojo.battle.pacing`). Nothing here sleeps or touches a clock.

Phases::

    PLAYER_TURN --player/auto action--> OPPONENT_TURN --step()--> PLAYER_TURN
         \\                                   \\
          +--------- defender down -----------+--> RESOLVED (terminal)
"""
from __future__ import annotations
import random
from typing import Callable, Dict, Any, List, Optional, Protocol

from dojo.core.errors import InvalidAction, ValidationError
from dojo.core.logging import logger
from .ai import choose_action
from .mechanics import compute_damage, apply_defense, next_charge
from .models import (
    Action, BattleEvent, BattleState, Cue, Combatant, ActionEvent, TurnEvent, ResolvedEvent,
    Side, PLAYER_TURN, OPPONENT_TURN, RESOLVED,
)
from .stats import EffectiveFighter

AUTO_SPECIAL_CHANCE = 0.45
AUTO_SPECIAL_CHANCE_FIRST = 0.35
PLAYER_ACTIONS = ("attack", "special")
OPPONENT_ACTIONS = ("attack", "special", "defend")

Policy = Callable[[BattleState, random.Random], Action]

class HitRecord(Protocol):
    highest_damage: int
    special_uses: int

class BattleSession:
    def __init__(
        self,
        player: EffectiveFighter,
        opponent: EffectiveFighter,
        *,
        difficulty: int = 1,
        rng: Optional[random.Random] = None,
        record: Optional[HitRecord] = None,
        policy: Policy = choose_action,
        on_event: Optional[Callable[[BattleEvent], None]] = None,
        on_cue: Optional[Callable[[Cue], None]] = None,
    ):
        if int(difficulty) < 1:
            raise ValidationError(f"difficulty must be >= 1, got {difficulty}")
        self.state = BattleState(Combatant(player), Combatant(opponent), difficulty=int(difficulty))
        self.rng = rng or random.Random()
        self.record = record
        self.policy = policy
        self.on_event = on_event
        self.on_cue = on_cue
        self.events: List[BattleEvent] = []
        self.cues: List[Cue] = []
        self.actions_resolved = 0
        self._auto_fresh = False
        self.settled = False  # set once progression has been applied
        logger.info("BattleStart", player=player.id, opponent=opponent.id, difficulty=self.state.difficulty)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def winner(self) -> Optional[Side]:
        return self.state.winner

    @property
    def player(self) -> Combatant:
        return self.state.player

    @property
    def opponent(self) -> Combatant:
        return self.state.opponent

    def is_over(self) -> bool:
        return self.state.phase == RESOLVED

    def outcome(self) -> str:
        if self.state.winner == "player":
            return "PLAYER_WIN"
        if self.state.winner == "opponent":
            return "PLAYER_LOSS"
        return "ONGOING"

    def pending(self) -> bool:
        """True when a deferred action is scheduled for :meth:`step`."""
        if self.state.phase == OPPONENT_TURN:
            return True
        return self.state.phase == PLAYER_TURN and self.state.auto_mode

    def snapshot(self) -> Dict[str, Any]:
        def pack(c: Combatant) -> Dict[str, Any]:
            return {
                "id": c.fighter.id, "name": c.fighter.name,
                "hp": c.display_hp, "max_hp": c.fighter.max_hp,
                "charge": c.charge, "special_required": c.fighter.special_required,
                "special_ready": c.special_ready(), "defending": c.defending,
            }
        return {
            "phase": self.state.phase,
            "turn": self.state.turn,
            "difficulty": self.state.difficulty,
            "auto": self.state.auto_mode,
            "player": pack(self.state.player),
            "opponent": pack(self.state.opponent),
            "winner": self.state.winner,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def player_action(self, action: str) -> ActionEvent:
        if self.state.phase == RESOLVED:
            raise InvalidAction(action, "the battle is over")
        if self.state.phase != PLAYER_TURN:
            raise InvalidAction(action, "it is not your turn")
        if action not in PLAYER_ACTIONS:
            raise InvalidAction(action, "unknown action")
        p = self.state.player
        if action == "special" and not p.special_ready():
            raise InvalidAction(action, f"special needs {p.fighter.special_required} attacks, have {p.charge}")
        return self._resolve("player", action)  # type: ignore[arg-type]

    def set_auto(self, enabled: bool) -> bool:
        if enabled and self.state.phase == RESOLVED:
            raise InvalidAction("auto", "the battle is over")
        if enabled and not self.state.auto_mode:
            self._auto_fresh = True
        self.state.auto_mode = bool(enabled)
        logger.debug("AutoMode", enabled=self.state.auto_mode)
        return self.state.auto_mode

    def step(self) -> Optional[ActionEvent]:
        """Run the one pending deferred action, if any."""
        if self.state.phase == OPPONENT_TURN:
            return self._opponent_turn()
        if self.state.phase == PLAYER_TURN and self.state.auto_mode:
            return self._auto_turn()
        return None

    def run_auto(self, max_steps: int = 1000) -> str:
        if not self.is_over():
            self.set_auto(True)
        steps = 0
        while self.pending() and steps < max_steps:
            self.step()
            steps += 1
        return self.outcome()

    # ------------------------------------------------------------------
    # Deferred turns
    # ------------------------------------------------------------------
    def _opponent_turn(self) -> ActionEvent:
        choice = self.policy(self.state, self.rng)
        if choice not in OPPONENT_ACTIONS:
            logger.warn("InconsistentPolicyOutput", proposed=choice)
            choice = "attack"
        elif choice == "special" and not self.state.opponent.special_ready():
            logger.warn("InconsistentPolicyOutput", proposed=choice,
                        charge=self.state.opponent.charge,
                        required=self.state.opponent.fighter.special_required)
            choice = "attack"
        return self._resolve("opponent", choice)

    def _auto_turn(self) -> ActionEvent:
        chance = AUTO_SPECIAL_CHANCE_FIRST if self._auto_fresh else AUTO_SPECIAL_CHANCE
        self._auto_fresh = False
        choice: Action = "attack"
        if self.state.player.special_ready() and self.rng.random() < chance:
            choice = "special"
        return self._resolve("player", choice, auto=True)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def _resolve(self, side: Side, action: Action, *, auto: bool = False) -> ActionEvent:
        actor = self.state.side(side)
        target = self.state.side(self.state.other(side))
        if action == "defend":
            actor.defending = True
            ev = ActionEvent(side=side, fighter_id=actor.fighter.id, action="defend",
                             target_hp=target.display_hp, auto=auto)
        else:
            special = action == "special"
            dmg = compute_damage(actor.fighter, special, self.rng)
            defended = target.defending
            if defended:
                dmg = apply_defense(dmg)
                target.defending = False
            target.hp -= dmg
            actor.charge = next_charge(actor.charge, actor.fighter, special)
            if side == "player" and self.record is not None:
                if dmg > self.record.highest_damage:
                    self.record.highest_damage = dmg
                if special:
                    self.record.special_uses += 1
            ev = ActionEvent(side=side, fighter_id=actor.fighter.id, action=action, damage=dmg,
                             defended=defended, target_hp=target.display_hp, auto=auto)
        self.actions_resolved += 1
        logger.debug("BattleAction", side=side, action=action, damage=ev.damage,
                     defended=ev.defended, target_hp=target.hp)
        self._emit(ev)
        self._cue(action)
        # defender-first: only the target can have dropped this action
        if target.is_down():
            self._finish(side)
        else:
            self._flip(side)
        return ev

    def _flip(self, acted: Side):
        self.state.phase = OPPONENT_TURN if acted == "player" else PLAYER_TURN
        self._emit(TurnEvent(next_side=self.state.turn))

    def _finish(self, winner: Side):
        self.state.phase = RESOLVED
        self.state.winner = winner
        self.state.auto_mode = False
        self._emit(ResolvedEvent(winner=winner))
        self._cue("win" if winner == "player" else "lose")
        logger.info("BattleResolved", winner=winner, actions=self.actions_resolved,
                    player_hp=self.state.player.hp, opponent_hp=self.state.opponent.hp)

    def _emit(self, ev: BattleEvent):
        self.events.append(ev)
        if self.on_event:
            self.on_event(ev)

    def _cue(self, name: Cue):
        self.cues.append(name)
        if self.on_cue:
            self.on_cue(name)

__all__ = ["BattleSession","HitRecord","AUTO_SPECIAL_CHANCE","AUTO_SPECIAL_CHANCE_FIRST"]
