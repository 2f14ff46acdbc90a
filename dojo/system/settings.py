from __future__ import annotations
import json, os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Callable, List
from dojo.core.logging import logger, apply_settings_level

SETTINGS_FILENAME = ".dojo_settings.json"
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10

@dataclass
class SettingsData:
    difficulty: int = 1            # 1 (easy) .. 10
    turn_delay_ms: int = 700       # pause before the opponent acts
    auto_delay_ms: int = 600       # pause before an auto-mode action
    log_level: str = "WARN"        # DEBUG / INFO / WARN / ERROR
    audio: bool = True
    last_account: str = ""

    def normalize(self):
        try:
            self.difficulty = int(self.difficulty)
        except (TypeError, ValueError):
            self.difficulty = 1
        self.difficulty = max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, self.difficulty))
        for name, default in (("turn_delay_ms", 700), ("auto_delay_ms", 600)):
            val = getattr(self, name)
            if not isinstance(val, int) or val < 0 or val > 5000:
                setattr(self, name, default)
        if self.log_level not in {"DEBUG","INFO","WARN","ERROR"}:
            self.log_level = "WARN"
        self.audio = bool(self.audio)
        self.last_account = str(self.last_account or "")

class Settings:
    def __init__(self, data: SettingsData, path: Path):
        self.data = data
        self.path = path
        self._listeners: List[Callable[[SettingsData], None]] = []

    @classmethod
    def _resolve_path(cls) -> Path:
        home = Path(os.path.expanduser("~"))
        if home.is_dir() and os.access(home, os.W_OK):
            return home / SETTINGS_FILENAME
        return Path.cwd() / SETTINGS_FILENAME

    @classmethod
    def load(cls) -> "Settings":
        path = cls._resolve_path()
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                # Unknown keys from older versions are dropped, missing ones take defaults
                known = {f.name for f in fields(SettingsData)}
                data = SettingsData(**{k: v for k, v in raw.items() if k in known})
                data.normalize()
                logger.debug("SettingsLoaded", path=str(path))
                return cls(data, path)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warn("SettingsParseFailedUsingDefaults", path=str(path), error=str(e))
        data = SettingsData()
        data.normalize()
        return cls(data, path)

    def save(self):
        try:
            self.path.write_text(json.dumps(asdict(self.data), indent=2), encoding="utf-8")
            logger.debug("SettingsSaved", path=str(self.path))
        except OSError as e:
            logger.error("SettingsSaveFailed", error=str(e))

    def on_change(self, fn: Callable[[SettingsData], None]):
        self._listeners.append(fn)

    def _notify(self):
        for fn in self._listeners:
            fn(self.data)

    def update(self, **changes):
        for k, v in changes.items():
            if not hasattr(self.data, k):
                raise AttributeError(f"unknown setting {k}")
            setattr(self.data, k, v)
        self.data.normalize()
        apply_settings_level(self.data.log_level)
        self.save()
        self._notify()

    def interactive_menu(self, ask: Callable[[str], str] = input):
        print("\n-- Options --")
        print(f"1) Difficulty (1-10) [{self.data.difficulty}]")
        print(f"2) Opponent delay ms [{self.data.turn_delay_ms}]")
        print(f"3) Log Level [{self.data.log_level}]")
        print(f"4) Audio [{'ON' if self.data.audio else 'OFF'}]")
        print("Enter number or blank to return.")
        choice = ask("> ").strip()
        if choice == "1":
            d = ask("Difficulty: ").strip()
            if d.isdigit():
                self.update(difficulty=int(d))
        elif choice == "2":
            ms = ask("Delay (ms): ").strip()
            if ms.isdigit():
                self.update(turn_delay_ms=int(ms))
        elif choice == "3":
            self.update(log_level=ask("Log Level (DEBUG/INFO/WARN/ERROR): ").strip().upper())
        elif choice == "4":
            val = ask("Audio (on/off): ").strip().lower()
            if val in {"on","off"}:
                self.update(audio=(val == "on"))
