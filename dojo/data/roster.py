"""Runtime loader for the fighter roster.

The roster is a fixed, ordered table shipped next to this module as
``roster.json``. It is loaded once, validated, and cached for the lifetime of
the process; callers only ever get frozen records back.
"""
from __future__ import annotations
import json
import random
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from dojo.core.errors import CatalogLookupFailure, DataLoadError

_ROSTER_FILE = Path(__file__).with_name("roster.json")

@dataclass(frozen=True)
class FighterDefinition:
    id: str
    name: str
    short: str
    max_hp: int
    attack_min: int
    attack_max: int
    special_multiplier: float
    special_required: int  # normal attacks needed before special unlocks

def _parse(raw: Dict[str, Any], path: str) -> FighterDefinition:
    try:
        f = FighterDefinition(
            id=str(raw["id"]),
            name=str(raw["name"]),
            short=str(raw.get("short") or raw["id"][:2].upper()),
            max_hp=int(raw["max_hp"]),
            attack_min=int(raw["attack_min"]),
            attack_max=int(raw["attack_max"]),
            special_multiplier=float(raw["special_multiplier"]),
            special_required=int(raw["special_required"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataLoadError(path, f"bad fighter entry {raw!r}: {e}") from e
    if f.max_hp <= 0:
        raise DataLoadError(path, f"{f.id}: max_hp must be positive")
    if f.attack_min < 1 or f.attack_min > f.attack_max:
        raise DataLoadError(path, f"{f.id}: attack range {f.attack_min}-{f.attack_max} invalid")
    if f.special_multiplier < 1:
        raise DataLoadError(path, f"{f.id}: special_multiplier below 1")
    if f.special_required < 1:
        raise DataLoadError(path, f"{f.id}: special_required must be positive")
    return f

def load_roster(path: Path = _ROSTER_FILE) -> Tuple[FighterDefinition, ...]:
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(str(path), str(e)) from e
    fighters = tuple(_parse(e, str(path)) for e in entries)
    seen: set[str] = set()
    for f in fighters:
        if f.id in seen:
            raise DataLoadError(str(path), f"duplicate fighter id {f.id}")
        seen.add(f.id)
    return fighters

@lru_cache(maxsize=None)
def all_fighters() -> Tuple[FighterDefinition, ...]:
    return load_roster()

@lru_cache(maxsize=None)
def _by_id() -> Dict[str, FighterDefinition]:
    return {f.id: f for f in all_fighters()}

def get_fighter(fighter_id: str) -> FighterDefinition:
    try:
        return _by_id()[fighter_id]
    except KeyError:
        raise CatalogLookupFailure("fighter", fighter_id) from None

def pick_opponent(player_id: str, rng: Optional[random.Random] = None) -> FighterDefinition:
    """Random opponent from the roster, never the player's own fighter."""
    rng = rng or random.Random()
    get_fighter(player_id)
    pool = [f for f in all_fighters() if f.id != player_id]
    return pool[rng.randint(0, len(pool) - 1)]

__all__ = ["FighterDefinition","load_roster","all_fighters","get_fighter","pick_opponent"]
