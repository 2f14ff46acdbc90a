"""Battle service: builds sessions from the roster and a profile, then settles them.

Starting a battle resolves both fighters (player upgrades from the profile,
opponent scaled for difficulty) and wires the profile's stats record into the
session so per-hit records are kept live. Finishing hands the outcome to the
progression evaluator. Battles without a profile skip progression entirely.
"""
from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, TypedDict

from dojo.core.errors import ValidationError
from dojo.core.logging import logger
from dojo.data.roster import FighterDefinition, get_fighter, pick_opponent
from dojo.system.save import PlayerProfile
from .models import BattleEvent
from .progression import BattleOutcome, settle_battle
from .session import BattleSession
from .stats import resolve_fighter, scale_for_difficulty

class BattleResult(TypedDict):
    outcome: Literal["PLAYER_WIN","PLAYER_LOSS"]
    opponent_id: str
    difficulty: int

@dataclass
class BattleReport:
    result: BattleResult
    coins: int = 0
    unlocked: List[str] = field(default_factory=list)
    profile: Optional[PlayerProfile] = None

@dataclass
class BattleSetup:
    session: BattleSession
    player: FighterDefinition
    opponent: FighterDefinition

class BattleService:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def start(
        self,
        character_id: str,
        *,
        opponent_id: Optional[str] = None,
        difficulty: Optional[int] = None,
        profile: Optional[PlayerProfile] = None,
        on_event: Optional[Callable[[BattleEvent], None]] = None,
        on_cue: Optional[Callable[[str], None]] = None,
    ) -> BattleSetup:
        player_def = get_fighter(character_id)
        if opponent_id is not None:
            opp_def = get_fighter(opponent_id)
        else:
            opp_def = pick_opponent(character_id, self.rng)
        if difficulty is None:
            difficulty = profile.difficulty if profile else 1
        upgrades = profile.upgrades.get(character_id, {}) if profile else {}
        player = resolve_fighter(player_def, upgrades)
        opponent = scale_for_difficulty(resolve_fighter(opp_def), difficulty)
        session = BattleSession(
            player, opponent,
            difficulty=difficulty,
            rng=self.rng,
            record=profile.stats if profile else None,
            on_event=on_event,
            on_cue=on_cue,
        )
        return BattleSetup(session=session, player=player_def, opponent=opp_def)

    def finish(self, session: BattleSession, profile: Optional[PlayerProfile] = None,
               now: Optional[float] = None) -> BattleReport:
        if not session.is_over() or session.winner is None:
            raise ValidationError("battle has not been resolved yet")
        if session.settled:
            raise ValidationError("battle has already been settled")
        result: BattleResult = {
            "outcome": "PLAYER_WIN" if session.winner == "player" else "PLAYER_LOSS",
            "opponent_id": session.opponent.fighter.id,
            "difficulty": session.state.difficulty,
        }
        if profile is None:
            logger.debug("BattleUntracked", outcome=result["outcome"])
            session.settled = True
            return BattleReport(result=result)
        settlement = settle_battle(
            profile,
            BattleOutcome(winner=session.winner, difficulty=session.state.difficulty,
                          opponent_id=session.opponent.fighter.id),
            self.rng,
            now,
        )
        session.settled = True
        return BattleReport(result=result, coins=settlement.coins,
                            unlocked=settlement.unlocked, profile=settlement.profile)

__all__ = ["BattleService","BattleResult","BattleReport","BattleSetup"]
