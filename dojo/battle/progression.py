"""Post-battle progression: cumulative stats, coin rewards and achievements.

Achievements are a declarative table; each rule is a predicate over the
profile's :class:`~dojo.system.save.CombatStats`. Adding a rule means adding a
row to ``ACHIEVEMENTS``; :func:`evaluate_achievements` never changes.

Coin formulas (D = battle difficulty):

    win   max(10, round(25 * D + randrange(0, 5 * D)))
    loss  max(5,  round(5 * D))
"""
from __future__ import annotations
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Tuple

from dojo.core.errors import ValidationError
from dojo.core.logging import logger
from dojo.system.save import CombatStats, PlayerProfile
from .stats import round_half_up

BASE_WIN_REWARD = 25
MIN_WIN_REWARD = 10
BASE_LOSS_REWARD = 5
MIN_LOSS_REWARD = 5

@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    predicate: Callable[[CombatStats], bool]
    hidden: bool = False

def _conqueror(level: int) -> Achievement:
    return Achievement(
        f"conqueror_{level}", f"Conqueror ({level})",
        f"Win a battle at difficulty {level}.",
        lambda s: s.wins_by_difficulty.get(level, 0) >= 1,
    )

ACHIEVEMENTS: Tuple[Achievement, ...] = (
    Achievement("first_blood", "First Blood", "Win your first battle.", lambda s: s.wins >= 1),
    Achievement("on_a_roll", "On a Roll", "Win 3 battles in a row.", lambda s: s.win_streak >= 3),
    Achievement("unstoppable", "Unstoppable", "Win 5 battles in a row.", lambda s: s.best_streak >= 5),
    Achievement("seasoned", "Seasoned", "Fight 10 battles.", lambda s: s.total_battles >= 10),
    Achievement("veteran", "Veteran", "Fight 50 battles.", lambda s: s.total_battles >= 50),
    Achievement("spinjitzu_master", "Spinjitzu Master", "Use 25 specials.", lambda s: s.special_uses >= 25),
    Achievement("heavy_hitter", "Heavy Hitter", "Land a single hit of 400 or more.", lambda s: s.highest_damage >= 400),
    Achievement("gearing_up", "Gearing Up", "Buy your first upgrade.", lambda s: s.purchases >= 1),
    Achievement("arsenal", "Arsenal", "Buy 10 upgrades.", lambda s: s.purchases >= 10),
    Achievement("rival_hunter", "Rival Hunter", "Defeat 5 different opponents.", lambda s: len(s.defeated) >= 5),
    Achievement("humbled", "Humbled", "Lose a battle.", lambda s: s.losses >= 1, hidden=True),
    _conqueror(5),
    _conqueror(10),
)

@dataclass(frozen=True)
class BattleOutcome:
    winner: Literal["player", "opponent"]
    difficulty: int
    opponent_id: str

    @property
    def won(self) -> bool:
        return self.winner == "player"

@dataclass
class Settlement:
    profile: PlayerProfile
    won: bool
    coins: int
    unlocked: List[str] = field(default_factory=list)

def achievement_by_id(achievement_id: str) -> Optional[Achievement]:
    for a in ACHIEVEMENTS:
        if a.id == achievement_id:
            return a
    return None

def win_reward(difficulty: int, rng: random.Random) -> int:
    bonus = rng.randrange(0, difficulty * 5)
    return max(MIN_WIN_REWARD, round_half_up(BASE_WIN_REWARD * difficulty + bonus))

def loss_reward(difficulty: int) -> int:
    return max(MIN_LOSS_REWARD, round_half_up(BASE_LOSS_REWARD * difficulty))

def record_result(stats: CombatStats, outcome: BattleOutcome) -> None:
    stats.total_battles += 1
    if outcome.won:
        stats.wins += 1
        stats.win_streak += 1
        stats.best_streak = max(stats.best_streak, stats.win_streak)
        stats.defeated.add(outcome.opponent_id)
        stats.wins_by_difficulty[outcome.difficulty] = stats.wins_by_difficulty.get(outcome.difficulty, 0) + 1
    else:
        stats.losses += 1
        stats.win_streak = 0

def grant_coins(profile: PlayerProfile, amount: int) -> int:
    profile.coins += amount
    profile.lifetime_coins += amount
    return amount

def evaluate_achievements(profile: PlayerProfile, now: Optional[float] = None) -> List[str]:
    """Unlock every rule that now holds and is not unlocked yet; returns new ids."""
    stamp = time.time() if now is None else now
    unlocked: List[str] = []
    for a in ACHIEVEMENTS:
        if a.id in profile.achievements:
            continue
        if a.predicate(profile.stats):
            profile.achievements[a.id] = stamp
            unlocked.append(a.id)
            logger.info("AchievementUnlocked", account=profile.account, achievement=a.id)
    return unlocked

def settle_battle(profile: PlayerProfile, outcome: BattleOutcome, rng: Optional[random.Random] = None,
                  now: Optional[float] = None) -> Settlement:
    if outcome.difficulty < 1:
        raise ValidationError(f"difficulty must be >= 1, got {outcome.difficulty}")
    rng = rng or random.Random()
    record_result(profile.stats, outcome)
    amount = win_reward(outcome.difficulty, rng) if outcome.won else loss_reward(outcome.difficulty)
    grant_coins(profile, amount)
    unlocked = evaluate_achievements(profile, now)
    logger.info("BattleSettled", account=profile.account, won=outcome.won, coins=amount,
                difficulty=outcome.difficulty, unlocked=len(unlocked))
    return Settlement(profile=profile, won=outcome.won, coins=amount, unlocked=unlocked)

__all__ = [
    "Achievement","ACHIEVEMENTS","BattleOutcome","Settlement","achievement_by_id",
    "win_reward","loss_reward","record_result","grant_coins","evaluate_achievements","settle_battle",
    "BASE_WIN_REWARD",
]
