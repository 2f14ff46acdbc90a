from __future__ import annotations
import json, os, re, time
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import List, Dict, Any, Optional, Set

from dojo.core.errors import MissingProfile, ValidationError
from dojo.core.logging import logger
from dojo.data.weapons import UpgradeLedger, clamp_level

SAVE_DIR_NAME = ".dojo_saves"
PROFILE_VERSION = 1
STARTING_COINS = 100
_ACCOUNT_RE = re.compile(r"^[A-Za-z0-9_.-]{1,32}$")

@dataclass
class CombatStats:
    wins: int = 0
    losses: int = 0
    win_streak: int = 0
    best_streak: int = 0
    total_battles: int = 0
    special_uses: int = 0
    purchases: int = 0
    highest_damage: int = 0
    defeated: Set[str] = field(default_factory=set)               # opponent ids beaten at least once
    wins_by_difficulty: Dict[int, int] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        data["defeated"] = sorted(self.defeated)
        # JSON object keys are strings; restored to ints in from_json
        data["wins_by_difficulty"] = {str(k): v for k, v in sorted(self.wins_by_difficulty.items())}
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CombatStats":
        return cls(
            wins=int(data.get("wins", 0)),
            losses=int(data.get("losses", 0)),
            win_streak=int(data.get("win_streak", 0)),
            best_streak=int(data.get("best_streak", data.get("win_streak", 0))),
            total_battles=int(data.get("total_battles", 0)),
            special_uses=int(data.get("special_uses", 0)),
            purchases=int(data.get("purchases", 0)),
            highest_damage=int(data.get("highest_damage", 0)),
            defeated=set(data.get("defeated", [])),
            wins_by_difficulty={int(k): int(v) for k, v in (data.get("wins_by_difficulty") or {}).items()},
        )

@dataclass
class PlayerProfile:
    account: str
    coins: int = STARTING_COINS
    lifetime_coins: int = 0
    difficulty: int = 1
    upgrades: UpgradeLedger = field(default_factory=dict)
    stats: CombatStats = field(default_factory=CombatStats)
    achievements: Dict[str, float] = field(default_factory=dict)  # id -> unlock epoch seconds
    last_save_ts: float = 0.0
    version: int = PROFILE_VERSION

    def to_json(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "coins": self.coins,
            "lifetime_coins": self.lifetime_coins,
            "difficulty": self.difficulty,
            "upgrades": {c: dict(w) for c, w in self.upgrades.items()},
            "stats": self.stats.to_json(),
            "achievements": dict(self.achievements),
            "last_save_ts": self.last_save_ts,
            "version": self.version,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PlayerProfile":
        if not isinstance(data, dict):
            raise TypeError(f"profile must be an object, got {type(data).__name__}")
        upgrades: UpgradeLedger = {}
        for char_id, weapons in (data.get("upgrades") or {}).items():
            if not isinstance(weapons, dict):
                raise TypeError(f"upgrades for {char_id!r} must be an object")
            upgrades[char_id] = {w: clamp_level(lvl) for w, lvl in (weapons or {}).items()}
        return cls(
            account=data["account"],
            coins=int(data.get("coins", STARTING_COINS)),
            lifetime_coins=int(data.get("lifetime_coins", 0)),
            difficulty=max(1, int(data.get("difficulty", 1))),
            upgrades=upgrades,
            stats=CombatStats.from_json(data.get("stats") or {}),
            achievements={k: float(v) for k, v in (data.get("achievements") or {}).items()},
            last_save_ts=float(data.get("last_save_ts", 0.0)),
            version=int(data.get("version", PROFILE_VERSION)),
        )

def validate_account(account: str) -> str:
    account = (account or "").strip()
    if not _ACCOUNT_RE.match(account):
        raise ValidationError(f"invalid account name {account!r} (letters, digits, . _ - only)")
    return account

def default_save_dir() -> Path:
    override = os.environ.get("DOJO_SAVE_DIR")
    if override:
        return Path(override)
    return Path(os.path.expanduser("~")) / SAVE_DIR_NAME

class ProfileStore:
    """One JSON file per account. Single writer per account is assumed."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else default_save_dir()

    def _path(self, account: str) -> Path:
        return self.root / f"{validate_account(account)}.json"

    def exists(self, account: str) -> bool:
        return self._path(account).is_file()

    def accounts(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.json"))

    def load(self, account: str) -> PlayerProfile:
        path = self._path(account)
        if not path.is_file():
            raise MissingProfile(account)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            profile = PlayerProfile.from_json(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("ProfileLoadFailed", file=str(path), error=str(e))
            raise MissingProfile(account) from e
        logger.debug("ProfileLoaded", account=profile.account)
        return profile

    def load_or_create(self, account: str) -> PlayerProfile:
        try:
            return self.load(account)
        except MissingProfile:
            if self.exists(account):
                raise
            profile = PlayerProfile(account=validate_account(account))
            logger.info("ProfileCreated", account=profile.account)
            return profile

    def save(self, profile: PlayerProfile) -> Path:
        path = self._path(profile.account)
        self.root.mkdir(parents=True, exist_ok=True)
        profile.last_save_ts = time.time()
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(profile.to_json(), indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.info("ProfileSaved", file=str(path))
        return path

    def delete(self, account: str) -> bool:
        path = self._path(account)
        if not path.exists():
            return False
        path.unlink()
        logger.info("ProfileDeleted", account=account)
        return True

__all__ = ["CombatStats","PlayerProfile","ProfileStore","validate_account","default_save_dir","STARTING_COINS"]
