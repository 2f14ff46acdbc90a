"""Cosmetic pacing for deferred battle turns.

The session itself is synchronous; this wrapper waits a little before each
opponent or auto-mode action so a human can follow the fight. Delays carry no
ordering meaning and ``sleep`` is injectable so tests run instantly.
"""
from __future__ import annotations
import time
from typing import Callable, Iterator, Optional

from .models import ActionEvent, OPPONENT_TURN
from .session import BattleSession

class Pacer:
    def __init__(self, opponent_delay_ms: int = 700, auto_delay_ms: int = 600,
                 sleep: Callable[[float], None] = time.sleep):
        self.opponent_delay_ms = max(0, int(opponent_delay_ms))
        self.auto_delay_ms = max(0, int(auto_delay_ms))
        self.sleep = sleep

    def delay_for(self, session: BattleSession) -> Optional[float]:
        if not session.pending():
            return None
        ms = self.opponent_delay_ms if session.phase == OPPONENT_TURN else self.auto_delay_ms
        return ms / 1000.0

    def advance(self, session: BattleSession) -> Optional[ActionEvent]:
        """Wait, then run one pending action. None when nothing is scheduled."""
        delay = self.delay_for(session)
        if delay is None:
            return None
        if delay:
            self.sleep(delay)
        return session.step()

    def drain(self, session: BattleSession, stop: Optional[Callable[[], bool]] = None) -> Iterator[ActionEvent]:
        """Run deferred actions until the player must act (or ``stop`` says so)."""
        while session.pending():
            if stop and stop():
                return
            ev = self.advance(session)
            if ev is not None:
                yield ev

__all__ = ["Pacer"]
